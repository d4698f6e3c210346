"""Let's Encrypt certificate issuance through certbot's nginx plugin."""

from __future__ import annotations

from adapters.packages import CERTBOT_PACKAGES, ensure_packages
from core.interfaces.runner import CommandRunner


def request_certificate(runner: CommandRunner, *, domain: str, email: str) -> None:
    """Install certbot and request a certificate for `domain`, non-interactively.

    certbot edits the nginx site in place and adds the HTTP -> HTTPS redirect.
    """

    ensure_packages(runner, CERTBOT_PACKAGES, refresh=False)
    runner.run(
        [
            "certbot",
            "--nginx",
            "-d",
            domain,
            "--non-interactive",
            "--agree-tos",
            "-m",
            email,
            "--redirect",
        ]
    )
