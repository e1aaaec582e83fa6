"""mx-login: interactive Matrix login client.

Discovers the login flows a homeserver offers, lets the user pick one,
completes the login and persists the session for later runs.
"""

__version__ = "0.1.0"
