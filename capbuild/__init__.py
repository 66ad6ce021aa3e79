"""capbuild — build Ionic Capacitor apps for Android and iOS."""

__version__ = "0.1.0"
