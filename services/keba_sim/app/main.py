import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from pydantic import BaseModel, Field

from services.keba_sim.app.core.protocol import SimModel

HTTP_HOST = os.getenv("SIM_HTTP_HOST", "127.0.0.1")
HTTP_PORT = int(os.getenv("SIM_HTTP_PORT", "8000"))

UDP_HOST = os.getenv("SIM_UDP_HOST", "127.0.0.1")
UDP_PORT = int(os.getenv("SIM_UDP_PORT", "7090"))

log = logging.getLogger("keba_sim")

class FaultsIn(BaseModel):
    delay_ms: int = Field(0, ge=0, le=5000)
    drop_rate: float = Field(0.0, ge=0.0, le=1.0)
    pad_bytes: int = Field(0, ge=0, le=65000)

class KebaUdpProto(asyncio.DatagramProtocol):
    def __init__(self, model: SimModel):
        self.model = model
        self.transport = None

    def connection_made(self, transport):
        # required: stored transport for later sendto()
        self.transport = transport

    def datagram_received(self, data: bytes, addr):
        faults = self.model.faults

        # drop packet
        if faults.should_drop():
            log.debug("dropped %r from %s", data, addr)
            return

        try:
            command = data.decode("ascii")
        except UnicodeDecodeError:
            # the wallbox ignores anything that is not ASCII
            return

        reply = faults.apply_padding(self.model.handle(command))

        # schedule send (with optional delay)
        delay = faults.delay_ms / 1000.0
        if delay > 0:
            asyncio.get_running_loop().call_later(delay, self.transport.sendto, reply, addr)
        else:
            self.transport.sendto(reply, addr)

def create_app(udp_host: str = UDP_HOST, udp_port: int = UDP_PORT) -> FastAPI:
    model = SimModel()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        loop = asyncio.get_running_loop()
        transport, _ = await loop.create_datagram_endpoint(
            lambda: KebaUdpProto(model),
            local_addr=(udp_host, udp_port),
        )
        app.state.udp_transport = transport
        app.state.udp_sockname = transport.get_extra_info("sockname")[:2]
        log.info("keba simulator listening on udp %s:%s", *app.state.udp_sockname)
        try:
            yield
        finally:
            transport.close()

    app = FastAPI(title="Keba Simulator", version="0.3.0", lifespan=lifespan)
    app.state.model = model

    @app.get("/health")
    def health():
        return {"status": "ok", "state": int(model.state)}

    @app.get("/status")
    def status(request: Request):
        return {
            "state": int(model.state),
            "enabled": model.enabled,
            "curr_ma": model.curr_ma,
            "reset_count": model.reset_count,
            "udp": list(getattr(request.app.state, "udp_sockname", ())),
            "faults": {
                "delay_ms": model.faults.delay_ms,
                "drop_rate": model.faults.drop_rate,
                "pad_bytes": model.faults.pad_bytes,
            },
        }

    @app.post("/control/reset")
    def reset():
        model.reset()
        return {"status": "reset", "reset_count": model.reset_count, "state": int(model.state)}

    @app.get("/control/faults")
    def get_faults():
        return {
            "delay_ms": model.faults.delay_ms,
            "drop_rate": model.faults.drop_rate,
            "pad_bytes": model.faults.pad_bytes,
        }

    @app.post("/control/faults")
    def set_faults(f: FaultsIn):
        model.faults.delay_ms = f.delay_ms
        model.faults.drop_rate = f.drop_rate
        model.faults.pad_bytes = f.pad_bytes
        return {"status": "faults_updated", "faults": f.model_dump()}

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
    uvicorn.run(
        app,
        host=HTTP_HOST,
        port=HTTP_PORT,
        reload=False)
