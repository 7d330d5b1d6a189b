from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from devicelink.errors import SimulatorError
from devicelink.routers import dev, device
from devicelink.settings import SimulatorSettings
from devicelink.simulator import DeviceSimulator


def create_app(simulator: DeviceSimulator | None = None) -> FastAPI:
    simulator = simulator or DeviceSimulator(SimulatorSettings.from_env())

    app = FastAPI(title="Device Simulator")
    app.state.simulator = simulator

    # Browsers on any dev origin poll the simulator directly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(simulator.settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SimulatorError)
    async def _simulator_error(request: Request, exc: SimulatorError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    app.include_router(device.router)
    app.include_router(dev.router)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = app.state.simulator.settings
    uvicorn.run("devicelink.main:app", host=settings.host, port=settings.port)
