"""Login negotiation.

- discovery: login flows -> login choices
- resolver: pick one choice (prompting when there are several)
- authenticators: password and SSO logins
- flow: discovery -> resolution -> authentication -> persistence
"""

from mx_login.login.authenticators import authenticate, login_with_password, login_with_sso
from mx_login.login.choices import LoginChoice, PasswordChoice, SsoChoice, SsoProviderChoice
from mx_login.login.console import ClickConsole, LoginConsole
from mx_login.login.discovery import discover_login_choices, login_choices_from_flows
from mx_login.login.flow import login_new, run_login
from mx_login.login.resolver import parse_choice, resolve_login_choice

__all__ = [
    # Choices
    "LoginChoice",
    "PasswordChoice",
    "SsoChoice",
    "SsoProviderChoice",
    # Console
    "ClickConsole",
    "LoginConsole",
    # Phases
    "authenticate",
    "discover_login_choices",
    "login_choices_from_flows",
    "login_with_password",
    "login_with_sso",
    "parse_choice",
    "resolve_login_choice",
    # Orchestration
    "login_new",
    "run_login",
]
