"""IMAP client factory for leadinbox.

Connection and login failures are not caught here: a mailbox we cannot reach
makes the whole run meaningless, so the error propagates and ends the process.
"""

from __future__ import annotations

import imaplib
import logging
import ssl

from settings import ImapSettings


def build_imap_client(config: ImapSettings) -> imaplib.IMAP4:
    """Connect and authenticate an IMAP client from settings.

    use_ssl selects implicit TLS (usually port 993); otherwise the plain
    connection is upgraded with STARTTLS before credentials are sent.
    """

    # Fail fast on missing credentials to avoid an ambiguous server error.
    if not config.username or not config.password:
        raise RuntimeError("Missing IMAP username or password (set IMAP__USERNAME / IMAP__PASSWORD)")

    logging.getLogger(__name__).info("Connecting to IMAP %s:%s", config.host, config.port)

    context = ssl.create_default_context()
    if config.use_ssl:
        client: imaplib.IMAP4 = imaplib.IMAP4_SSL(config.host, config.port, ssl_context=context)
    else:
        client = imaplib.IMAP4(config.host, config.port)
        client.starttls(ssl_context=context)

    try:
        client.login(config.username, config.password)
    except imaplib.IMAP4.error:
        client.shutdown()
        raise
    return client
