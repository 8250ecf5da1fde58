"""Internal constants shared across the library."""

DEFAULT_REST_HOST = "https://rest.ably.io"
USER_AGENT = "pyably/0"
PROTOCOL_VERSION = "2"

# ------------------------------------------------------------------
# REST endpoints
# ------------------------------------------------------------------

PUBLISH_ENDPOINT = "/push/publish"
DEVICE_REGISTRATIONS_ENDPOINT = "/push/deviceRegistrations"
CHANNEL_SUBSCRIPTIONS_ENDPOINT = "/push/channelSubscriptions"
CHANNELS_ENDPOINT = "/push/channels"

# Header carrying the update token on registration updates/deregistration.
DEVICE_TOKEN_HEADER = "X-Ably-DeviceToken"

# ------------------------------------------------------------------
# Persisted push keys
# ------------------------------------------------------------------

ACTIVATION_STATE_KEY = "ably.push.activationState"
USE_CUSTOM_REGISTERER_KEY = "ably.push.useCustomRegisterer"
USE_CUSTOM_DEREGISTERER_KEY = "ably.push.useCustomDeregisterer"
LOCAL_DEVICE_KEY = "ably.push.device"
