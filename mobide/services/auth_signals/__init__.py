from mobide.services.auth_signals.detector import AuthSignalDetector

__all__ = ["AuthSignalDetector"]
