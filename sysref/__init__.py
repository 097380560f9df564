"""Reference flight-software components: framework settings, XBee radio link, IMU, camera and image encoding."""

__version__ = "0.1.0"