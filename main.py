import logging
import time

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from forza_relay.broadcaster import Broadcaster
from forza_relay.clients import ClientRegistry
from forza_relay.players import PlayerRegistry
from forza_relay.relay import TelemetryRelay
from forza_relay.settings import RelaySettings


settings = RelaySettings.from_env()


def configure_logging() -> None:
    if logging.getLogger().handlers:
        return

    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


configure_logging()
logger = logging.getLogger("forza_relay.main")

# Process-wide singletons: registries, fan-out and the UDP ingestion path.
players = PlayerRegistry(
    match_tolerance_ms=settings.match_tolerance_ms,
    player_timeout_sec=settings.player_timeout_sec,
)
clients = ClientRegistry()
broadcaster = Broadcaster(clients, send_timeout_sec=settings.send_timeout_ms / 1000)
relay = TelemetryRelay(
    players,
    broadcaster,
    queue_size=settings.queue_size,
    sweep_interval_sec=settings.sweep_interval_ms / 1000,
)

app = FastAPI()


@app.on_event("startup")
async def startup_event() -> None:
    # bind failure propagates and aborts startup
    await relay.start(settings.udp_host, settings.port)


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await relay.stop()


@app.websocket("/data")
async def data_ws(websocket: WebSocket):
    """Viewer channel: receives every relayed message; inbound frames are ignored."""
    await websocket.accept()
    client_name = clients.describe(websocket)
    clients.add(websocket)
    logger.info("Viewer %s connected (%s total)", client_name, len(clients))
    try:
        while True:
            message = await websocket.receive()
            if message.get("type") == "websocket.disconnect":
                break
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.exception("Viewer websocket error: %s", e)
    finally:
        clients.remove(websocket)
        logger.info("Viewer %s disconnected (%s total)", client_name, len(clients))


@app.get("/health")
async def health_check():
    return JSONResponse({"status": "ok"})


@app.get("/snapshot")
async def snapshot():
    """Debug view of live players and connected viewers."""
    return JSONResponse({
        "server_time": time.time(),
        "players": players.snapshot(),
        "connections_count": len(clients),
        "matchToleranceMs": players.match_tolerance_ms,
        "playerTimeoutSec": players.player_timeout_sec,
    })


# Mounted last so the routes above take precedence.
app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="viewer")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.http_host, port=settings.port)
