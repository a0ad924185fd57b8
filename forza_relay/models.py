from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class TelemetryFrame(BaseModel):
    """Fields of one Data Out packet that the relay forwards or reacts to."""
    is_race_on: int = Field(..., description="Race active flag (s32)")
    timestamp_ms: int = Field(..., ge=0, description="Source-local timestamp in ms (u32)")
    position_x: float = Field(..., description="X position")
    position_y: float = Field(..., description="Y position")
    position_z: float = Field(..., description="Z position")
    yaw: float = Field(..., description="Yaw in radians")
    speed: float = Field(..., description="Speed in m/s")
    accelerator: int = Field(..., ge=0, le=255, description="Accelerator pedal")
    brake: int = Field(..., ge=0, le=255, description="Brake pedal")
    handbrake: int = Field(..., ge=0, le=255, description="Handbrake")
    steer: int = Field(..., ge=0, le=255, description="Raw steering byte")

    model_config = ConfigDict(frozen=True)


@dataclass(eq=False)
class Player:
    id: int
    correlation_key: int
    hue: int
    last_timestamp_ms: int = 0
    last_seen_ms: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "hue": self.hue,
            "correlationKey": self.correlation_key,
            "lastTimestampMs": self.last_timestamp_ms,
            "lastSeenMs": self.last_seen_ms,
        }
