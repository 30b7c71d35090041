import logging


def configure_logging(app):
    """
    Application code logs through `current_app.logger`; this only sets its
    level from LOG_LEVEL and gives the default handler a timestamped format.
    """
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    app.logger.setLevel(level)
    formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")
    for handler in app.logger.handlers:
        handler.setFormatter(formatter)
