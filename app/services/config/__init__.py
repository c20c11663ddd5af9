"""Runtime settings for the bridge setup service.

Everything the service needs to know about its surroundings (where the bridge
and Synapse data volumes are mounted, which homeserver and domain the bridge
serves, how to listen and log) lives on one `BridgeSetupConfig`, resolved from
the environment when the app is created:

	from app.services.config import BridgeSetupConfig
"""

from app.services.config.bridge_setup_config import BridgeSetupConfig

__all__ = ["BridgeSetupConfig"]
