"""Priority chain of detectors."""

from __future__ import annotations

from collections.abc import Iterable

from starlette.requests import HTTPConnection

from .detectors import Detector, IPAddress


class DetectorChain:
    """Ordered detectors; the **last** registered runs first.

    Callers add increasingly specific detectors after the generic ones,
    so the most recently added one takes precedence.  Evaluation stops at
    the first detector yielding a specified address.
    """

    __slots__ = ("_detectors",)

    def __init__(self, detectors: Iterable[Detector] = ()) -> None:
        self._detectors: tuple[Detector, ...] = tuple(detectors)

    def __len__(self) -> int:
        return len(self._detectors)

    @property
    def detectors(self) -> tuple[Detector, ...]:
        return self._detectors

    def detect(self, request: HTTPConnection) -> IPAddress | None:
        for detector in reversed(self._detectors):
            ip = detector(request)
            if ip is not None and not ip.is_unspecified:
                return ip
        return None
