#!/usr/bin/env python3
"""
Energy Exec Setup Wizard

Interactive setup for configuring the Energy Exec planning bot.
Run with: python scripts/setup.py
"""

import argparse
import os
import re
import secrets
import subprocess
import sys
import time
from getpass import getpass
from pathlib import Path
from typing import Optional, Tuple

import requests

# ============================================================================
# CONSTANTS
# ============================================================================

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

TELEGRAM_API_BASE = "https://api.telegram.org"
OPENCODE_ZEN_BASE_URL = "https://opencode.ai/zen/v1"

ENV_KEYS = [
    "OPENCODE_ZEN_API_KEY",
    "TELEGRAM_BOT_TOKEN",
    "AUTHORIZED_USER_ID",
    "TELEGRAM_WEBHOOK_SECRET",
]

# Terminal colors (disabled if not a TTY or NO_COLOR is set)
COLORS_ENABLED = sys.stdout.isatty() and os.environ.get("NO_COLOR") is None
GREEN = "\033[92m" if COLORS_ENABLED else ""
RED = "\033[91m" if COLORS_ENABLED else ""
YELLOW = "\033[93m" if COLORS_ENABLED else ""
BLUE = "\033[94m" if COLORS_ENABLED else ""
BOLD = "\033[1m" if COLORS_ENABLED else ""
DIM = "\033[2m" if COLORS_ENABLED else ""
RESET = "\033[0m" if COLORS_ENABLED else ""


# ============================================================================
# UI HELPERS
# ============================================================================


def print_header():
    print(f"\n{BOLD}{'=' * 60}{RESET}")
    print(f"{BOLD}          Energy Exec - Setup Wizard{RESET}")
    print(f"{BOLD}{'=' * 60}{RESET}\n")


def print_stage(num: int, title: str):
    print(f"\n{BLUE}{BOLD}[Stage {num}] {title}{RESET}")
    print("-" * 50)


def print_success(msg: str):
    print(f"{GREEN}[OK]{RESET} {msg}")


def print_error(msg: str):
    print(f"{RED}[X]{RESET} {msg}")


def print_info(msg: str):
    print(f"{YELLOW}[i]{RESET} {msg}")


def print_dim(msg: str):
    print(f"{DIM}{msg}{RESET}")


def prompt_secret(prompt: str) -> str:
    """Prompt for sensitive input with masked display."""
    return getpass(f"{prompt}: ").strip()


def prompt_input(prompt: str, default: str = None) -> str:
    """Prompt for regular input with optional default."""
    if default:
        result = input(f"{prompt} [{default}]: ").strip()
        return result if result else default
    return input(f"{prompt}: ").strip()


def confirm(prompt: str, default: bool = True) -> bool:
    """Ask for yes/no confirmation."""
    suffix = "[Y/n]" if default else "[y/N]"
    result = input(f"{prompt} {suffix}: ").strip().lower()
    if not result:
        return default
    return result in ("y", "yes")


# ============================================================================
# VALIDATION FUNCTIONS
# ============================================================================


def validate_zen_key(api_key: str) -> Tuple[bool, str]:
    """Validate an OpenCode Zen API key by listing models."""
    try:
        response = requests.get(
            f"{OPENCODE_ZEN_BASE_URL}/models",
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=15,
        )
        if response.status_code == 200:
            return True, "API key validated"
        elif response.status_code in (401, 403):
            return False, "Invalid API key - check your key at opencode.ai"
        else:
            return False, f"Unexpected response: {response.status_code}"
    except requests.Timeout:
        return False, "Request timed out - check your internet connection"
    except requests.RequestException as e:
        return False, f"Network error: {e}"


def validate_telegram_bot(token: str) -> Tuple[bool, str, dict]:
    """Validate Telegram bot token via getMe."""
    try:
        response = requests.get(f"{TELEGRAM_API_BASE}/bot{token}/getMe", timeout=15)
        if response.status_code == 200:
            data = response.json()
            if data.get("ok"):
                return True, "Bot validated", data.get("result", {})
            return False, "Invalid response from Telegram", {}
        elif response.status_code == 401:
            return False, "Invalid bot token - check your token from @BotFather", {}
        else:
            return False, f"Unexpected response: {response.status_code}", {}
    except requests.Timeout:
        return False, "Request timed out - check your internet connection", {}
    except requests.RequestException as e:
        return False, f"Network error: {e}", {}


# ============================================================================
# USER ID HELPER
# ============================================================================


def wait_for_telegram_message(bot_token: str, timeout: int = 120) -> Optional[str]:
    """
    Wait for a message to arrive and return the sender's user ID.
    Clears existing updates first to only catch new messages.
    """
    try:
        clear_response = requests.get(
            f"{TELEGRAM_API_BASE}/bot{bot_token}/getUpdates",
            params={"offset": -1, "limit": 1},
            timeout=10,
        )
        offset = 0
        if clear_response.ok:
            updates = clear_response.json().get("result", [])
            if updates:
                offset = updates[-1]["update_id"] + 1
    except requests.RequestException:
        offset = 0

    print_info(f"Waiting for your message (timeout: {timeout // 60} min)...")
    print_dim("   Send any message to your bot in Telegram")

    start = time.time()
    dots = 0

    while time.time() - start < timeout:
        try:
            response = requests.get(
                f"{TELEGRAM_API_BASE}/bot{bot_token}/getUpdates",
                params={"offset": offset, "timeout": 5},
                timeout=15,
            )
            if response.ok:
                for update in response.json().get("result", []):
                    sender = update.get("message", {}).get("from", {})
                    user_id = str(sender.get("id", ""))
                    if user_id:
                        print()
                        print_success(f"Found user ID: {user_id}")
                        if sender.get("first_name"):
                            print_info(f"Message from: {sender['first_name']}")
                        return user_id

            dots = (dots + 1) % 4
            print(f"\r   {'.' * (dots + 1):<4}", end="", flush=True)
            time.sleep(0.5)

        except requests.RequestException:
            time.sleep(2)

    print()
    return None


# ============================================================================
# CONFIGURATION MANAGEMENT
# ============================================================================


def load_existing_env(filepath: Path = ENV_FILE) -> dict:
    """Load existing .env file if present."""
    config = {}
    if filepath.exists():
        with open(filepath) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    config[key.strip()] = value.strip()
    return config


def save_env_file(config: dict, filepath: Path = ENV_FILE):
    """Save configuration to .env file."""
    with open(filepath, "w") as f:
        f.write("# Energy Exec Configuration\n")
        f.write("# Generated by setup wizard\n\n")
        for key in ENV_KEYS:
            if config.get(key):
                f.write(f"{key}={config[key]}\n")
    print_success(f"Saved configuration to {filepath}")


def generate_webhook_secret() -> str:
    """Generate cryptographically secure webhook secret (64 hex chars)."""
    return secrets.token_hex(32)


# ============================================================================
# MODAL INTEGRATION
# ============================================================================


def check_modal_installed() -> Tuple[bool, bool]:
    """Check if Modal CLI is installed and authenticated.

    Returns: (installed, authenticated)
    """
    try:
        result = subprocess.run(
            ["modal", "--version"], capture_output=True, text=True, timeout=10
        )
        if result.returncode != 0:
            return False, False
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False, False

    try:
        result = subprocess.run(
            ["modal", "app", "list"], capture_output=True, text=True, timeout=15
        )
        authenticated = result.returncode == 0
    except subprocess.TimeoutExpired:
        authenticated = False

    return True, authenticated


def create_modal_secrets(config: dict) -> bool:
    """Create Modal secrets via CLI."""
    secrets_config = [
        ("opencode-zen", {"OPENCODE_ZEN_API_KEY": config["OPENCODE_ZEN_API_KEY"]}),
        (
            "telegram",
            {
                "TELEGRAM_BOT_TOKEN": config["TELEGRAM_BOT_TOKEN"],
                "AUTHORIZED_USER_ID": config["AUTHORIZED_USER_ID"],
                "TELEGRAM_WEBHOOK_SECRET": config["TELEGRAM_WEBHOOK_SECRET"],
            },
        ),
    ]

    for secret_name, values in secrets_config:
        args = ["modal", "secret", "create", secret_name, "--force"]
        args += [f"{k}={v}" for k, v in values.items()]

        try:
            result = subprocess.run(args, capture_output=True, text=True, timeout=30)
            if result.returncode != 0:
                print_error(f"Failed to create secret '{secret_name}'")
                if result.stderr:
                    print_dim(f"   {result.stderr.strip()}")
                return False
            print_success(f"Created Modal secret: {secret_name}")
        except subprocess.TimeoutExpired:
            print_error(f"Timeout creating secret '{secret_name}'")
            return False

    return True


def find_webhook_url(deploy_output: str) -> Optional[str]:
    """Pick the telegram_webhook URL out of `modal deploy` output."""
    urls = []
    for line in deploy_output.split("\n"):
        for url in re.findall(r"https?://[^\s]+modal\.run[^\s]*", line):
            if "telegram-webhook" in url or "telegram_webhook" in line.lower():
                return url
            urls.append(url)
    return urls[0] if urls else None


def deploy_to_modal() -> Tuple[bool, Optional[str]]:
    """
    Run modal deploy and extract the webhook URL.

    Returns: (success, webhook_url or None)
    """
    modal_agent = PROJECT_ROOT / "modal_agent.py"
    if not modal_agent.exists():
        print_error(f"modal_agent.py not found at {modal_agent}")
        return False, None

    print_info("Deploying to Modal (this may take a minute)...")

    try:
        result = subprocess.run(
            ["modal", "deploy", str(modal_agent)],
            capture_output=True,
            text=True,
            timeout=300,
            cwd=PROJECT_ROOT,
        )
    except subprocess.TimeoutExpired:
        print_error("Deployment timed out")
        return False, None

    if result.returncode != 0:
        print_error("Deployment failed")
        if result.stderr:
            print_dim(f"   {result.stderr.strip()}")
        return False, None

    print_success("Deployed to Modal")
    webhook_url = find_webhook_url(result.stdout)
    if webhook_url:
        print_info(f"Webhook URL: {webhook_url}")
    return True, webhook_url


def register_telegram_webhook(bot_token: str, webhook_url: str, secret: str) -> bool:
    """Register webhook URL with Telegram."""
    try:
        response = requests.post(
            f"{TELEGRAM_API_BASE}/bot{bot_token}/setWebhook",
            json={"url": webhook_url, "secret_token": secret, "allowed_updates": ["message"]},
            timeout=15,
        )
        if response.status_code == 200 and response.json().get("ok"):
            print_success("Telegram webhook registered")
            return True
        error = response.json().get("description", "Unknown error")
        print_error(f"Failed to register webhook: {error}")
        return False
    except requests.RequestException as e:
        print_error(f"Network error: {e}")
        return False


# ============================================================================
# MAIN WIZARD
# ============================================================================


def main():
    parser = argparse.ArgumentParser(
        description="Energy Exec Setup Wizard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/setup.py              # Full interactive setup
  python scripts/setup.py --update     # Update existing credentials
  python scripts/setup.py --local-only # Only create .env file (for python -m energy_exec)
        """,
    )
    parser.add_argument("--update", action="store_true", help="Update existing configuration (loads current .env)")
    parser.add_argument("--local-only", action="store_true", help="Only create .env file, skip Modal")
    args = parser.parse_args()

    print_header()

    config = load_existing_env() if args.update else {}
    if config:
        print_info(f"Loaded existing configuration from {ENV_FILE}")
        print_dim("   Press Enter to keep existing values\n")

    # =========================================================================
    # Stage 1: OpenCode Zen API Key
    # =========================================================================
    print_stage(1, "OpenCode Zen API Key")
    print("Get your API key from: https://opencode.ai/zen\n")

    existing_key = config.get("OPENCODE_ZEN_API_KEY", "")
    while True:
        key = prompt_secret("OpenCode Zen API key")
        if not key and existing_key:
            key = existing_key
            print_info("Using existing key")
            break
        if not key:
            print_error("API key is required")
            continue

        print_info("Validating...")
        valid, msg = validate_zen_key(key)
        if valid:
            print_success(msg)
            break
        print_error(msg)
        if not confirm("Try again?"):
            print_info("Skipping validation - key saved anyway")
            break

    config["OPENCODE_ZEN_API_KEY"] = key

    # =========================================================================
    # Stage 2: Telegram Bot Token
    # =========================================================================
    print_stage(2, "Telegram Bot Token")
    print("Create a bot:")
    print("  1. Open Telegram and search for @BotFather")
    print("  2. Send /newbot and follow the prompts")
    print("  3. Copy the token (looks like 123456789:ABC...)\n")

    existing_bot = config.get("TELEGRAM_BOT_TOKEN", "")
    bot_info = {}
    while True:
        bot_token = prompt_secret("Bot token")
        if not bot_token and existing_bot:
            bot_token = existing_bot
            print_info("Using existing token")
            break
        if ":" not in bot_token:
            print_error("Invalid format - should contain ':'")
            continue

        print_info("Validating...")
        valid, msg, bot_info = validate_telegram_bot(bot_token)
        if valid:
            print_success(msg)
            if bot_info.get("username"):
                print_info(f"Bot: @{bot_info['username']}")
            break
        print_error(msg)
        if not confirm("Try again?"):
            print_info("Skipping validation - token saved anyway")
            break

    config["TELEGRAM_BOT_TOKEN"] = bot_token

    # =========================================================================
    # Stage 3: Authorized User
    # =========================================================================
    print_stage(3, "Authorized Telegram User")
    print("Only one Telegram account may talk to the bot.\n")

    user_id = config.get("AUTHORIZED_USER_ID", "")
    if user_id and not confirm(f"Keep authorized user {user_id}?"):
        user_id = ""

    if not user_id:
        print(f"\nOpen Telegram and send any message to @{bot_info.get('username', 'your bot')}")
        user_id = wait_for_telegram_message(bot_token, timeout=240)
        if not user_id:
            print_error("Timed out waiting for message")
            user_id = prompt_input("Enter your numeric Telegram user ID manually")

    config["AUTHORIZED_USER_ID"] = user_id

    # =========================================================================
    # Stage 4: Webhook Secret
    # =========================================================================
    print_stage(4, "Webhook Secret")

    webhook_secret = config.get("TELEGRAM_WEBHOOK_SECRET", "")
    if webhook_secret and confirm("Keep existing secret?"):
        print_info("Using existing secret")
    else:
        webhook_secret = generate_webhook_secret()
        print_success(f"Generated secret: {webhook_secret[:16]}...")

    config["TELEGRAM_WEBHOOK_SECRET"] = webhook_secret

    # =========================================================================
    # Stage 5: Save Configuration
    # =========================================================================
    print_stage(5, "Save Configuration")
    save_env_file(config)

    if args.local_only:
        print(f"\n{GREEN}{BOLD}Setup complete!{RESET}")
        print("\nRun the bot locally with long polling:")
        print("  python -m energy_exec\n")
        return

    modal_installed, modal_authenticated = check_modal_installed()
    if not (modal_installed and modal_authenticated):
        print_info("Modal CLI not installed or not authenticated")
        print("  pip install modal && modal setup")
        print("Then re-run with --update to create secrets and deploy.\n")
        return

    print_info("Creating Modal secrets...")
    if not create_modal_secrets(config):
        print_error("Some secrets failed - check errors above")
        return

    # =========================================================================
    # Stage 6: Deploy
    # =========================================================================
    print_stage(6, "Deploy to Modal")

    if not confirm("Deploy to Modal now?"):
        print_info("Skipping deployment. Run 'modal deploy modal_agent.py' later.")
        return

    success, webhook_url = deploy_to_modal()
    if success and webhook_url:
        register_telegram_webhook(bot_token, webhook_url, webhook_secret)
    elif success:
        print_info("Deployment succeeded but webhook URL not detected")
        print("Register webhook manually:")
        print(f'  curl -X POST "{TELEGRAM_API_BASE}/bot{bot_token}/setWebhook" \\')
        print('    -H "Content-Type: application/json" \\')
        print(f"    -d '{{\"url\": \"YOUR_MODAL_WEBHOOK_URL\", \"secret_token\": \"{webhook_secret}\"}}'")

    print(f"\n{GREEN}{BOLD}Setup complete!{RESET}")
    print(f"\n{BOLD}How to use your bot:{RESET}")
    print(f"  Open Telegram and message @{bot_info.get('username', 'your bot')}")
    print("  Send /start to set your timezone, then /checkin each morning")
    print("  and /reflect each evening. /help lists everything else.")
    print(f"\n  {BOLD}View logs:{RESET}")
    print("    modal app logs energy-exec")
    print()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print(f"\n{YELLOW}Setup cancelled.{RESET}")
        sys.exit(1)
