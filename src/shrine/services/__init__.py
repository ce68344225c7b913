"""The gateway service and its shared engine components.

Services are the top layer of the diamond DAG, depending on
[shrine.core][shrine.core], [shrine.nips][shrine.nips],
[shrine.utils][shrine.utils] and [shrine.models][shrine.models].

Attributes:
    Gateway: HTTP and WebSocket front door. Validates events, re-signs them
        under the service identity and forwards them to downstream relays.
    common: Engine components (validation, signing, rate limiting, relay
        connections) used by the gateway.

Examples:
    ```python
    from shrine.services import Gateway

    gateway = Gateway.from_yaml("config/gateway.yaml")
    async with gateway:
        await gateway.run_forever()
    ```
"""

from .gateway import Gateway, GatewayConfig


__all__ = ["Gateway", "GatewayConfig"]
