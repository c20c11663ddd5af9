from __future__ import annotations


class BridgeSetupError(RuntimeError):
    """Unexpected failure while provisioning (I/O, serialization).

    The message is returned verbatim to API clients as `{"error": ...}`.
    """


class MissingMatrixUserError(ValueError):
    pass
