import logging, json, sys, time, os


def get_logger(name="LicenseKey", level=None, to_file=None, stream=None):
    """
    Structured JSON-line logger shared by all license key components.

    Handlers live on the top-level component logger ("LicenseKey"), so every
    "LicenseKey.*" logger shares them. Passing `stream` redirects that shared
    console handler, e.g. to stderr when stdout carries program output.
    """
    logger = logging.getLogger(name)
    if level is None:
        level = os.getenv("LICENSEKEY_LOG_LEVEL", "INFO").upper()
    logger.setLevel(level)

    base = logging.getLogger(name.split(".")[0])
    if not base.handlers:
        handler = logging.StreamHandler(stream or sys.stdout)
        formatter = logging.Formatter(
            fmt=json.dumps({
                "ts": "%(asctime)s",
                "level": "%(levelname)s",
                "name": "%(name)s",
                "msg": "%(message)s"
            }),
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
        formatter.converter = time.gmtime  # UTC timestamps
        handler.setFormatter(formatter)
        base.addHandler(handler)

        if to_file:
            os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
            file_handler = logging.FileHandler(to_file)
            file_handler.setFormatter(formatter)
            base.addHandler(file_handler)
    elif stream is not None:
        redirect_console(stream, name)

    return logger


def redirect_console(stream, name="LicenseKey"):
    """Point the shared console handler at `stream`; returns the previous stream."""
    previous = None
    for h in logging.getLogger(name.split(".")[0]).handlers:
        if type(h) is logging.StreamHandler:
            previous = h.setStream(stream) or h.stream
    return previous
