from contextlib import asynccontextmanager
from typing import AsyncIterator, TYPE_CHECKING

from fastapi import FastAPI
from structlog.stdlib import BoundLogger

from infrastructure.logging.setup import configure_logging

if TYPE_CHECKING:
    from infrastructure.configuration import Settings


def _get_logger(settings: "Settings") -> BoundLogger:
    return configure_logging(
        log_level=settings.LOG_LEVEL, is_production=settings.is_production
    )


def _list_configs(settings: "Settings", logger: BoundLogger) -> None:
    config_settings: dict[str, list[object]] = {"settings": []}

    for key, value in settings.model_dump().items():
        if isinstance(value, dict):
            config_settings[key] = list(value.keys())
        else:
            config_settings["settings"].append({key: value})

    logger.info("configuration_initialized", base_settings=config_settings["settings"])
    for key, value in config_settings.items():
        if key != "settings":
            logger.info("configuration_loaded", config_setting=key, keys=value)


def _log_i18n(app: FastAPI, logger: BoundLogger) -> None:
    components = app.state.i18n
    logger.info(
        "i18n_initialized",
        signals=components.chain.signal_names,
        supported=list(components.chain.supported),
        default_language=components.chain.supported.default,
        bundle_count=len(components.registry),
        namespaces=components.registry.namespaces(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = app.state.settings
    logger = _get_logger(settings)

    app.state.logger = logger

    logger.info("application_startup")
    _list_configs(settings, logger)
    _log_i18n(app, logger)

    yield

    await app.state.i18n.aclose()
    logger.info("application_shutdown")
