"""
Discord AutoReply - Startup Validation
Pre-flight checks run by main.cli() before the Discord client connects.
"""

import os
import shutil
import sys
from pathlib import Path
from typing import Callable, List, NamedTuple, Tuple

from dotenv import load_dotenv

# Colors for terminal
class Colors:
    OK = '\033[92m'
    WARN = '\033[93m'
    FAIL = '\033[91m'
    INFO = '\033[94m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    END = '\033[0m'

def ok(msg): print(f"{Colors.OK}✓{Colors.END} {msg}")
def warn(msg): print(f"{Colors.WARN}⚠{Colors.END} {msg}")
def fail(msg): print(f"{Colors.FAIL}✗{Colors.END} {msg}")
def info(msg): print(f"{Colors.INFO}ℹ{Colors.END} {msg}")


BASE_DIR = Path(__file__).parent


class Issue(NamedTuple):
    text: str
    critical: bool = True


def _offer_env_copy(env_file: Path, env_example: Path) -> bool:
    """Ask whether to seed .env from .env.example. True if the copy was made."""
    print(f"\n{Colors.BOLD}Create .env from .env.example?{Colors.END} "
          f"{Colors.DIM}(edit DISCORD_TOKEN afterwards){Colors.END}")
    try:
        answer = input("[Y/n]: ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        return False
    if answer not in ('', 'y', 'yes'):
        return False
    shutil.copy(env_example, env_file)
    ok("Created .env, add your DISCORD_TOKEN and restart")
    return True


def check_env_file(interactive: bool = True) -> Tuple[bool, List[Issue]]:
    """A .env file, or DISCORD_TOKEN already exported in the environment."""
    env_file = BASE_DIR / ".env"
    if env_file.exists():
        ok(".env file found")
        return True, []
    if os.getenv("DISCORD_TOKEN"):
        info("No .env file, reading settings from the environment")
        return True, []

    fail("No .env file and DISCORD_TOKEN is not exported")
    env_example = BASE_DIR / ".env.example"
    if interactive and env_example.exists() and _offer_env_copy(env_file, env_example):
        return False, [Issue(".env was just created and still needs a DISCORD_TOKEN")]
    return False, [Issue("missing .env")]


def check_discord_token() -> Tuple[bool, List[Issue]]:
    """DISCORD_TOKEN is set and shaped like a bot token (three dot-separated parts)."""
    load_dotenv()
    token = os.getenv("DISCORD_TOKEN") or ""

    if not token:
        fail("DISCORD_TOKEN is not set")
        return False, [Issue("missing DISCORD_TOKEN")]
    if token.count('.') != 2 or len(token) < 50:
        fail("DISCORD_TOKEN does not look like a bot token")
        return False, [Issue("invalid DISCORD_TOKEN")]

    ok("DISCORD_TOKEN is set")
    return True, []


def check_provider_settings() -> Tuple[bool, List[Issue]]:
    """Check the selected provider, its API key and the numeric settings."""
    import runtime_config
    from config import env_api_key

    settings = runtime_config.get_all()
    issues = []

    _, errors = runtime_config.validate_settings(settings)
    for error in errors:
        fail(f"Setting {error}")
        issues.append(Issue(f"invalid setting: {error}"))

    provider = settings.get("ai_provider")
    if settings.get("api_key") or env_api_key(provider):
        ok(f"API key available for {provider}")
    else:
        # Not fatal: the bot starts and alerts the owner until a key is set
        warn(f"No API key for {provider} (set it in the dashboard or the provider's env var)")
        issues.append(Issue(f"no API key for {provider}", critical=False))

    return not issues, issues


CHECKS: List[Tuple[str, Callable[..., Tuple[bool, List[Issue]]]]] = [
    ("Configuration Files", check_env_file),
    ("Discord Token", lambda interactive: check_discord_token()),
    ("Provider Settings", lambda interactive: check_provider_settings()),
]


def validate_startup(interactive: bool = True) -> bool:
    """Run every check. False if any critical issue was found; warnings only get listed."""
    print(f"\n{Colors.BOLD}Discord AutoReply - Startup Validation{Colors.END}\n")

    issues: List[Issue] = []
    for number, (title, check) in enumerate(CHECKS, start=1):
        print(f"{Colors.BOLD}[{number}/{len(CHECKS)}] {title}{Colors.END}")
        _, found = check(interactive)
        issues.extend(found)
        print()

    critical = [issue for issue in issues if issue.critical]
    warnings = [issue for issue in issues if not issue.critical]

    if critical:
        fail(f"{len(critical)} critical issue(s), fix them and try again:")
        for issue in critical:
            print(f"  • {issue.text}")
        return False

    for issue in warnings:
        warn(issue.text)
    ok("Checks passed, starting bot" if not warnings else "Proceeding with warnings")
    return True


if __name__ == "__main__":
    sys.exit(0 if validate_startup(interactive=True) else 1)
