"""
ConversationController: the chatbot's dialogue as an explicit state machine.

Every ConversationState has exactly one handler. A handler talks to the user,
optionally runs a lookup, and requests exactly one transition; the dispatch
loop then runs the handler of the new state. EXIT is the only handler that
does not transition: it ends the loop.

    GREETING ──> MAIN_MENU ──1──> POSTAL_LOOKUP ──found / back──> MAIN_MENU
                    │   └───2──> WEATHER_LOOKUP ──found──> WEATHER_LOOKUP
                    │                   └───────back────> MAIN_MENU
                    └───9──> EXIT
"""

from datetime import datetime, timezone
from typing import Callable

from api_client import ApiClient, TransportError
from logging_utils import get_logger
from lookups import PostalLookup, WeatherLookup, build_postal_query
from mapping import format_address, format_snapshot
from state import ConversationState, Handler, LookupFailure, PostalQuery, WeatherSnapshot
from state_machine import ConversationStateMachine, UnknownStateError

logger = get_logger(__name__)


# =============================================================================
# User-facing text
# =============================================================================

BANNER = [
    "==================================",
    "             CHATBOT",
    "==================================",
]
WELCOME = "Olá! Eu posso consultar endereços pelo CEP e a previsão do tempo da sua cidade."
PRESS_ENTER_TO_CONTINUE = "Pressione ENTER para continuar..."
PRESS_ENTER_TO_RETURN = "Pressione ENTER para voltar ao menu..."

MENU_LINES = [
    "",
    "O que você deseja fazer?",
    "1 - Consultar endereço pelo CEP",
    "2 - Consultar previsão do tempo",
    "9 - Sair",
]
MENU_PROMPT = "Escolha uma opção: "
INVALID_OPTION = "Opção inválida. Tente novamente."

POSTAL_PROMPT = "Digite o CEP (8 dígitos, somente números) ou 'voltar' para retornar ao menu: "
INVALID_POSTAL_CODE = "CEP inválido. Digite exatamente 8 números, sem traços ou pontos."
POSTAL_LOADING = "Consultando CEP..."
POSTAL_CONNECTION_ERROR = "Erro ao consultar o CEP. Verifique sua conexão e tente novamente."
ADDRESS_HEADER = "Endereço encontrado:"

WEATHER_PROMPT = "Digite o nome da cidade ou 'voltar' para retornar ao menu: "
EMPTY_CITY = "Digite o nome de uma cidade."
WEATHER_LOADING = "Consultando previsão do tempo..."
WEATHER_CONNECTION_ERROR = "Erro ao consultar a previsão do tempo. Verifique sua conexão e tente novamente."
SNAPSHOT_HEADER = "Previsão do tempo:"

FAREWELL = "Até logo! Obrigado por usar o chatbot."

BACK_COMMANDS = frozenset({"voltar", "back"})


# =============================================================================
# Routing
# =============================================================================

MENU_ROUTES: dict[str, ConversationState] = {
    "1": ConversationState.POSTAL_LOOKUP,
    "2": ConversationState.WEATHER_LOOKUP,
    "9": ConversationState.EXIT,
}


def route_menu_choice(choice: str) -> ConversationState | None:
    """State selected by a menu choice, or None for an unknown option."""
    return MENU_ROUTES.get(choice.strip())


def is_back_command(text: str) -> bool:
    return text.strip().lower() in BACK_COMMANDS


# =============================================================================
# Controller
# =============================================================================

class ConversationController:
    """
    Runs one conversation from GREETING to EXIT.

    Usage:
        api = ApiClient(config.api, sink)
        controller = ConversationController(TerminalConsole(), api, sink)
        try:
            controller.start()
        finally:
            controller.close()

    Args:
        console: Interactive channel (prompt / show / clear / loading).
        api: Provider client; closed when the conversation exits.
        sink: Log sink for access and error events.
        clock: Returns the current time for the day/night decision.
    """

    def __init__(
        self,
        console,
        api: ApiClient,
        sink,
        clock: Callable[[], datetime] | None = None,
    ):
        self.console = console
        self.api = api
        self.sink = sink
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.machine = ConversationStateMachine(sink)
        self.postal = PostalLookup(api, sink)
        self.weather = WeatherLookup(api, sink)

        self.postal_query: PostalQuery | None = None
        self.last_snapshot: WeatherSnapshot | None = None
        self.finished = False

        for state, handler in self.handler_table().items():
            self.machine.register_handler(state, handler)

    def handler_table(self) -> dict[ConversationState, Handler]:
        """One handler per ConversationState member."""
        return {
            ConversationState.GREETING: self.handle_greeting,
            ConversationState.MAIN_MENU: self.handle_main_menu,
            ConversationState.POSTAL_LOOKUP: self.handle_postal_lookup,
            ConversationState.WEATHER_LOOKUP: self.handle_weather_lookup,
            ConversationState.EXIT: self.handle_exit,
        }

    # -------------------------------------------------------------------------
    # Dispatch loop
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """
        Run the conversation until EXIT.

        Raises:
            UnknownStateError: If dispatch reaches a state without a handler.
        """
        self.sink.access("Chatbot started")
        self.machine.transition(ConversationState.GREETING)

        while not self.finished:
            self.process_current_state()

    def process_current_state(self) -> None:
        """Run the handler registered for the current state."""
        state = self.machine.get_current_state()
        handler = self.machine.get_handler(state) if state is not None else None

        if handler is None:
            error = UnknownStateError(state)
            self.sink.error(str(error))
            logger.critical("%s; terminating", error)
            raise error

        handler()

    def close(self) -> None:
        self.api.close()

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def handle_greeting(self) -> None:
        self.console.clear()
        for line in BANNER:
            self.console.show(line)
        self.console.show(WELCOME)
        self.console.prompt(PRESS_ENTER_TO_CONTINUE)
        self.machine.transition(ConversationState.MAIN_MENU)

    def handle_main_menu(self) -> None:
        for line in MENU_LINES:
            self.console.show(line)
        choice = self.console.prompt(MENU_PROMPT)

        next_state = route_menu_choice(choice)
        if next_state is None:
            self.sink.access(f"Invalid menu option: {choice.strip()}")
            self.console.show(INVALID_OPTION)
            next_state = ConversationState.MAIN_MENU

        self.machine.transition(next_state)

    def handle_postal_lookup(self) -> None:
        raw = self.console.prompt(POSTAL_PROMPT)
        if is_back_command(raw):
            self.machine.transition(ConversationState.MAIN_MENU)
            return

        self.postal_query = build_postal_query(raw)
        if not self.postal_query.is_valid:
            self.console.show(INVALID_POSTAL_CODE)
            self.machine.transition(ConversationState.POSTAL_LOOKUP)
            return

        self.console.loading(POSTAL_LOADING)
        try:
            result = self.postal.lookup(self.postal_query.normalized_digits)
        except TransportError as err:
            self.sink.error(f"Postal lookup aborted for {self.postal_query.normalized_digits}: {err}")
            logger.info("Postal lookup failed: %s", err)
            self.console.show(POSTAL_CONNECTION_ERROR)
            self.machine.transition(ConversationState.POSTAL_LOOKUP)
            return

        if isinstance(result, LookupFailure):
            self.console.show(result.error)
            self.machine.transition(ConversationState.POSTAL_LOOKUP)
            return

        self.console.show()
        self.console.show(ADDRESS_HEADER)
        for line in format_address(result):
            self.console.show(line)
        self.console.show()
        self.console.prompt(PRESS_ENTER_TO_RETURN)
        self.machine.transition(ConversationState.MAIN_MENU)

    def handle_weather_lookup(self) -> None:
        city = self.console.prompt(WEATHER_PROMPT).strip()
        if is_back_command(city):
            self.machine.transition(ConversationState.MAIN_MENU)
            return

        if not city:
            self.console.show(EMPTY_CITY)
            self.machine.transition(ConversationState.WEATHER_LOOKUP)
            return

        self.console.loading(WEATHER_LOADING)
        try:
            result = self.weather.get_weather(city, now=self.clock())
        except TransportError as err:
            self.sink.error(f"Weather lookup aborted for {city}: {err}")
            logger.info("Weather lookup failed: %s", err)
            self.console.show(WEATHER_CONNECTION_ERROR)
            self.machine.transition(ConversationState.WEATHER_LOOKUP)
            return

        if isinstance(result, LookupFailure):
            self.console.show(result.error)
            self.machine.transition(ConversationState.WEATHER_LOOKUP)
            return

        self.last_snapshot = result
        self.console.show()
        self.console.show(SNAPSHOT_HEADER)
        for line in format_snapshot(result):
            self.console.show(line)
        self.console.show()
        # Stay here so the user can ask about another city
        self.machine.transition(ConversationState.WEATHER_LOOKUP)

    def handle_exit(self) -> None:
        self.console.show(FAREWELL)
        self.sink.access("Chatbot finished")
        self.close()
        self.finished = True
