"""
Gunicorn Configuration for ISC DHCP Lease Inspector

Run with: gunicorn -c gunicorn.conf.py "app:create_app()"
"""

import logging
from config_manager import ConfigManager

# Server socket
bind = "127.0.0.1:5000"

# Lease lookups are cheap and stateless, a few sync workers are enough
workers = 3
worker_class = "sync"
timeout = 60

# Logging
accesslog = "-"  # Log to stdout
errorlog = "-"   # Log to stderr


def on_starting(server):
    """
    Called once when Gunicorn master process starts.
    Logs the effective configuration before workers are forked.
    """
    try:
        config_manager = ConfigManager()
        config = config_manager.with_defaults(config_manager.read_config())

        log_level = config['LOG_LEVEL'].upper()
        numeric_level = getattr(logging, log_level, logging.INFO)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))

        logger = logging.getLogger('lease-inspector-startup')
        logger.setLevel(numeric_level)
        logger.addHandler(console_handler)

        logger.info("=" * 60)
        logger.info("ISC DHCP Lease Inspector starting")
        logger.info(f"Config file: {config_manager.config_path}")
        logger.info(f"Schema file: {config_manager.schema_path or '(built-in)'}")
        logger.info(f"Workers: {workers}")
        logger.info(f"Bind: {bind}")
        logger.info(f"Log level: {log_level}")
        logger.info(f"Log path: {config['LOGGING_PATH']}")
        logger.info(f"Leases file: {config.get('DHCP_LEASES_PATH', '(not set)')}")
        logger.info(f"API prefix: {config['API_PREFIX']}")
        logger.info(f"CORS origins: {config['CORS_ORIGINS']}")
        errors = config_manager.validate_config(config)
        for error in errors:
            logger.warning(f"Configuration problem: {error}")
        logger.info("=" * 60)
    except (OSError, ValueError) as e:
        # Workers will report the same problem when they build the app
        logging.basicConfig(level=logging.INFO)
        logging.error(f"Failed to load configuration during startup: {e}")
