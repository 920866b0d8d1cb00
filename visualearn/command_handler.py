"""
VisuaLearn - Command Handler Module

This module provides the interactive chat loop: it owns the conversation
history and the pending image attachment, handles slash commands, and hands
each user message to the provider.
"""

import getpass
from typing import Any, Dict, List, Optional

from tabulate import tabulate

from .colors import Colors
from .config import Config
from .logging_utils import get_logger, log_exception
from .providers import BaseChatProvider, ConversationMessage, file_to_data_url

logger = get_logger(__name__)

IMAGE_MARKER = "\n[Image attached]"
GENERIC_ERROR_REPLY = ("Sorry, there was an error processing your request. "
                       "Please check your API key in settings.")
INIT_FAILED_MESSAGE = ("Failed to initialize Gemini with the provided API key. "
                       "Please check if the key is valid.")


class CommandHandler:
    """Chat state and command dispatch for the terminal UI."""

    def __init__(self, provider: BaseChatProvider, config: Config):
        """Initialize the command handler.

        Args:
            provider: The chat provider messages are sent to
            config: Application configuration, used to persist the API key
        """
        self.provider = provider
        self.config = config
        self.history: List[ConversationMessage] = []
        self.pending_attachment: Optional[str] = None
        self.pending_attachment_name: Optional[str] = None
        self.commands = self._build_command_map()

    def _build_command_map(self) -> Dict[str, Dict[str, Any]]:
        """Build a map of commands and their handlers.

        Returns:
            Dictionary mapping command names to their handlers and descriptions
        """
        commands = {
            "/help": {
                "handler": self.cmd_help,
                "description": "Show help message"
            },
            "/quit": {
                "handler": self.cmd_quit,
                "description": "Exit the application",
                "aliases": ["/exit"]
            },
            "/attach": {
                "handler": self.cmd_attach,
                "description": "Attach an image file to the next message: /attach <path>"
            },
            "/detach": {
                "handler": self.cmd_detach,
                "description": "Remove the pending image attachment"
            },
            "/history": {
                "handler": self.cmd_history,
                "description": "Show the conversation so far"
            },
            "/new": {
                "handler": self.cmd_new,
                "description": "Start a new conversation"
            },
            "/key": {
                "handler": self.cmd_key,
                "description": "Set the Gemini API key: /key [api-key]"
            },
            "/status": {
                "handler": self.cmd_status,
                "description": "Show the models in use"
            },
        }

        for cmd, info in list(commands.items()):
            for alias in info.get("aliases", []):
                commands[alias] = info

        return commands

    async def handle_command(self, user_input: str) -> bool:
        """Run a slash command.

        Args:
            user_input: The full input line, starting with '/'

        Returns:
            True if the application should exit
        """
        command, _, argument = user_input.strip().partition(" ")
        command_info = self.commands.get(command.lower())
        if command_info is None:
            print(f"{Colors.WARNING}Unknown command: {command}. Type /help for available commands.{Colors.ENDC}")
            return False
        return bool(await command_info["handler"](argument.strip()))

    async def send_user_message(self, text: str) -> Optional[str]:
        """Send one user turn, with the pending attachment if any, and record the reply.

        Returns:
            The reply text shown to the user, or None if nothing was sent.
        """
        text = text.strip()
        if not text and not self.pending_attachment:
            return None

        if not self.provider.is_ready():
            print(f"{Colors.WARNING}No API key is set. Please enter your Gemini API key.{Colors.ENDC}")
            await self.cmd_key("")
            if not self.provider.is_ready():
                return None

        if self.pending_attachment and not self.provider.has_vision:
            print(f"{Colors.WARNING}No vision model is available for this API key. "
                  f"Use /detach to send text only.{Colors.ENDC}")
            return None

        attachment = self.pending_attachment
        content = text + IMAGE_MARKER if attachment else text
        prior_history = list(self.history)
        self.history.append(ConversationMessage(role="user", content=content, attachment=attachment))
        self.pending_attachment = None
        self.pending_attachment_name = None

        logger.info(f"Sending message to Gemini with {'image attached' if attachment else 'no image'}")
        try:
            reply = await self.provider.send(content, prior_history, attachment)
        except Exception as e:
            log_exception(logger, e, "Error getting response from Gemini:")
            reply = GENERIC_ERROR_REPLY

        self.history.append(ConversationMessage(role="model", content=reply))
        print(f"\n{Colors.GREEN}Gemini:{Colors.ENDC} {reply}")
        return reply

    async def apply_api_key(self, api_key: str) -> bool:
        """Persist a new API key and initialize the provider with it."""
        if not self.config.set_api_key(api_key):
            print(f"{Colors.FAIL}Error saving API key.{Colors.ENDC}")
            return False
        if not await self.provider.initialize(api_key):
            print(f"{Colors.FAIL}{INIT_FAILED_MESSAGE}{Colors.ENDC}")
            return False
        print(f"{Colors.GREEN}API key saved. Connected to Gemini.{Colors.ENDC}")
        return True

    async def cmd_help(self, argument: str = "") -> bool:
        print(f"\n{Colors.HEADER}Available commands:{Colors.ENDC}")
        seen = set()
        for cmd, info in self.commands.items():
            if id(info) in seen:
                continue
            seen.add(id(info))
            aliases = info.get("aliases", [])
            alias_text = f" (aliases: {', '.join(aliases)})" if aliases else ""
            print(f"  {Colors.BOLD}{cmd}{Colors.ENDC}{alias_text} - {info['description']}")
        return False

    async def cmd_quit(self, argument: str = "") -> bool:
        print(f"{Colors.GREEN}Goodbye!{Colors.ENDC}")
        return True

    async def cmd_attach(self, argument: str = "") -> bool:
        if not argument:
            print(f"{Colors.WARNING}Usage: /attach <path-to-image>{Colors.ENDC}")
            return False
        try:
            self.pending_attachment = file_to_data_url(argument)
        except (OSError, ValueError) as e:
            print(f"{Colors.FAIL}Could not attach image: {e}{Colors.ENDC}")
            return False
        self.pending_attachment_name = argument
        print(f"{Colors.CYAN}Image attached: {argument}. It will be sent with your next message.{Colors.ENDC}")
        return False

    async def cmd_detach(self, argument: str = "") -> bool:
        if self.pending_attachment is None:
            print(f"{Colors.WARNING}No image is attached.{Colors.ENDC}")
        else:
            print(f"{Colors.CYAN}Removed attachment: {self.pending_attachment_name}{Colors.ENDC}")
        self.pending_attachment = None
        self.pending_attachment_name = None
        return False

    async def cmd_history(self, argument: str = "") -> bool:
        if not self.history:
            print(f"{Colors.WARNING}No messages yet.{Colors.ENDC}")
            return False
        rows = []
        for idx, msg in enumerate(self.history, start=1):
            preview = msg.content.replace("\n", " ")
            if len(preview) > 60:
                preview = preview[:57] + "..."
            rows.append([idx, msg.role, preview, "yes" if msg.attachment else ""])
        print(tabulate(rows, headers=["#", "Role", "Message", "Image"], tablefmt="simple"))
        return False

    async def cmd_new(self, argument: str = "") -> bool:
        self.history = []
        self.pending_attachment = None
        self.pending_attachment_name = None
        print(f"{Colors.GREEN}Started a new conversation.{Colors.ENDC}")
        return False

    async def cmd_key(self, argument: str = "") -> bool:
        api_key = argument or getpass.getpass("Gemini API key: ").strip()
        if not api_key:
            print(f"{Colors.WARNING}No API key entered.{Colors.ENDC}")
            return False
        await self.apply_api_key(api_key)
        return False

    async def cmd_status(self, argument: str = "") -> bool:
        state = "ready" if self.provider.is_ready() else "not initialized"
        print(f"{Colors.CYAN}Provider: {self.provider.provider_name} ({state}){Colors.ENDC}")
        print(tabulate(self.provider.describe_models(), headers=["Purpose", "Model", "Display name"]))
        return False


async def async_command_loop(handler: CommandHandler) -> None:
    """Run the chat loop until the user quits.

    Args:
        handler: The CommandHandler holding the chat state
    """
    print(f"\nType your message and press Enter. "
          f"Type {Colors.BOLD}/attach <path>{Colors.ENDC} to add an image, "
          f"{Colors.BOLD}/help{Colors.ENDC} for all commands.")

    while True:
        try:
            prompt_suffix = f" [{handler.pending_attachment_name}]" if handler.pending_attachment_name else ""
            user_input = input(f"\n{Colors.BLUE}You{prompt_suffix}: {Colors.ENDC}")

            if user_input.startswith('/'):
                if await handler.handle_command(user_input):
                    break
                continue

            await handler.send_user_message(user_input)

        except (KeyboardInterrupt, EOFError):
            print(f"\n{Colors.GREEN}Goodbye!{Colors.ENDC}")
            break
        except Exception as e:
            log_exception(logger, e, "Unexpected error in chat loop:")
            print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
