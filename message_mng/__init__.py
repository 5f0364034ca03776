"""
Message Management API.

REST backend serving stored MQTT device messages to the IoT console.
"""
__version__ = "1.0.0"
