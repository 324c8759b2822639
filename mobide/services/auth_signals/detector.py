"""AuthSignalDetector - spots device-login URLs and codes in terminal output.

Detection is chunk-local: a URL or code split across two output chunks is
not detected.
"""

from __future__ import annotations

import re

from mobide.config import DEFAULT_DEVICE_CODE_PATTERN, DEFAULT_URL_PATTERN
from mobide.models.session import AuthSignal, AuthState


class AuthSignalDetector:
    """Stateless pattern scanner over output chunks."""

    def __init__(
        self,
        url_pattern: str = DEFAULT_URL_PATTERN,
        device_code_pattern: str = DEFAULT_DEVICE_CODE_PATTERN,
    ) -> None:
        self._url_re = re.compile(url_pattern)
        self._code_re = re.compile(device_code_pattern)

    def detect(self, text: str, current: AuthState) -> list[AuthSignal]:
        """Return the signals in ``text`` that differ from what is known.

        Each match is compared with the latest value of its kind, starting
        from ``current`` and advancing as matches are found, so a value
        repeated within or across chunks is reported once.
        """
        signals: list[AuthSignal] = []

        url = current.url
        for match in self._url_re.finditer(text):
            value = match.group(0)
            if value != url:
                url = value
                signals.append(AuthSignal(type="url", value=value))

        # Codes inside URLs count too (e.g. "?otc=ABCD-EFGH")
        code = current.code
        for match in self._code_re.finditer(text):
            value = match.group(0)
            if value != code:
                code = value
                signals.append(AuthSignal(type="code", value=value))

        return signals
