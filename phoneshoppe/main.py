from prometheus_fastapi_instrumentator import Instrumentator

from phoneshoppe import create_app
from phoneshoppe.core.config import settings
from phoneshoppe.core.logging import configure_logging

configure_logging(settings.LOG_LEVEL)
app = create_app()
Instrumentator().instrument(app).expose(app)


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
