import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# Seconds between two liveness sweeps. Also used as the server's WebSocket
# ping interval and pong timeout.
LIVENESS_INTERVAL_SECONDS = 30

# Shown in room info for members that joined without a user_name.
GUEST_NAME = "Guest"

GENERATED_ROOM_ID_LENGTH = 8

# Inbound message kinds, grouped by how the relay routes them.
FORWARD_TYPES = {"Offer", "Answer", "IceCandidate"}
BROADCAST_TYPES = {"Subtitle", "ChatMessage", "MuteStatus"}

# Keepalive frame queued on every sweep. Clients may ignore it; a "Pong"
# reply is accepted and dropped.
PROBE_MESSAGE = {"type": "Ping"}
PROBE_ACK_TYPE = "Pong"

__all__ = [
    "HOST",
    "PORT",
    "LOG_LEVEL",
    "LOG_FILE",
    "LIVENESS_INTERVAL_SECONDS",
    "GUEST_NAME",
    "GENERATED_ROOM_ID_LENGTH",
    "FORWARD_TYPES",
    "BROADCAST_TYPES",
    "PROBE_MESSAGE",
    "PROBE_ACK_TYPE",
]
