import logging
from typing import Callable, Optional

from slide2048.game import GameManager, GameOutcome
from slide2048.storage import StorageManager

logger = logging.getLogger(__name__)

ManagerFactory = Callable[..., GameManager]


class GameSession:
    """Host-side owner of one playable game.

    Wires a storage manager, renderer and input dispatcher to a manager built
    by ``factory`` and reports the score to ``on_game_end`` once per terminal
    state. Choosing to keep playing after a win re-arms the report.
    """

    def __init__(
        self,
        storage: StorageManager,
        renderer=None,
        dispatcher=None,
        factory: ManagerFactory = GameManager,
        on_game_end: Optional[Callable[[int], None]] = None,
        on_score_update: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.storage = storage
        self.renderer = renderer
        self.dispatcher = dispatcher
        self.factory = factory
        self.on_game_end = on_game_end
        self.on_score_update = on_score_update
        self.manager: Optional[GameManager] = None
        self.end_reported = False

    def start(self) -> GameManager:
        self.teardown()
        self.end_reported = False
        self.manager = self.factory(
            storage=self.storage,
            renderer=self.renderer,
            on_game_terminated=self._handle_terminated,
        )
        if self.dispatcher is not None:
            self.dispatcher.bind(self.manager)
            self.dispatcher.on("move", self._after_move)
            self.dispatcher.on("restart", self._after_restart)
            self.dispatcher.on("keep_playing", self._after_keep_playing)
        self._report_score()
        return self.manager

    def restart(self) -> None:
        if self.manager is None:
            self.start()
            return
        self.manager.restart()
        self._after_restart()

    def teardown(self) -> None:
        if self.dispatcher is not None:
            self.dispatcher.unbind()
        self.manager = None

    def _after_move(self, _direction=None) -> None:
        self._report_score()

    def _after_restart(self) -> None:
        self.end_reported = False
        self._report_score()

    def _after_keep_playing(self) -> None:
        if self.manager is not None and not self.manager.is_game_terminated():
            self.end_reported = False

    def _report_score(self) -> None:
        if self.manager is None or self.on_score_update is None:
            return
        try:
            self.on_score_update(self.manager.score)
        except Exception:
            logger.exception("on_score_update callback failed")

    def _handle_terminated(self, outcome: GameOutcome) -> None:
        if self.end_reported:
            return
        self.end_reported = True
        logger.info("Game ended with score %d (won=%s)", outcome.score, outcome.won)
        if self.on_game_end is not None:
            self.on_game_end(outcome.score)
