import logging
import ssl

import confuse

logger = logging.getLogger(__name__)


def create_server_context(config: confuse.ConfigView):
    """Build the TLS context for a listener, or None to serve plain HTTP.

    ``certificate`` may be a combined PEM holding the key as well, in which
    case ``key`` can be left out.
    """
    if not config.exists():
        return None

    cert_file = config["certificate"].as_path()

    key_file = None
    if config["key"].exists():
        key_file = config["key"].as_path()

    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(certfile=cert_file, keyfile=key_file)

    if config["ciphers"].exists():
        context.set_ciphers(config["ciphers"].as_str())

    logger.debug("Loaded TLS certificate %s", cert_file)

    return context
