"""The presentation event loop.

One iteration: clear the buffer, flush, stop if past the last slide,
render the current slide, flush, then block for input. A resize wakes the
wait with ``None`` and the same slide is drawn again at the new size.
"""

from __future__ import annotations

import logging

from presiterm.config import PresenterConfig
from presiterm.deck import Deck
from presiterm.errors import RenderError
from presiterm.highlight import PygmentsHighlighter
from presiterm.markdown import TerminalMarkdown
from presiterm.navigation import KeybindingsManager, NavigationState
from presiterm.process import SubprocessRunner
from presiterm.renderers import RenderContext, renderer_for
from presiterm.screen import ScreenBuffer
from presiterm.terminal import Terminal

logger = logging.getLogger(__name__)


def context_from_config(config: PresenterConfig, terminal: Terminal) -> RenderContext:
    """Build the default collaborators for *config*."""
    highlighter = PygmentsHighlighter(config.theme)
    return RenderContext(
        margin=config.margin,
        highlighter=highlighter,
        markdown=TerminalMarkdown(highlighter=highlighter),
        process_runner=SubprocessRunner(prefix=config.command_prefix),
        image_size=(config.image_width, config.image_height),
        stdout=terminal.stdout,
    )


class Presenter:
    """Drives a deck on a terminal until the user quits or runs off the end."""

    def __init__(
        self,
        deck: Deck,
        terminal: Terminal,
        config: PresenterConfig | None = None,
        ctx: RenderContext | None = None,
        screen: ScreenBuffer | None = None,
    ) -> None:
        self.deck = deck
        self.terminal = terminal
        self.config = config or PresenterConfig()
        self.ctx = ctx or context_from_config(self.config, terminal)
        self.screen = screen or ScreenBuffer(terminal)
        self.nav = NavigationState()
        self.keybindings = KeybindingsManager(self.config.keybindings)

    @property
    def index(self) -> int:
        return self.nav.index

    def run(self) -> None:
        """Present until quit or past the last slide.

        The terminal is cleared and handed back in cooked mode with a
        visible cursor however the loop ends. Errors propagate.
        """
        with self.terminal.raw_mode():
            self.terminal.hide_cursor()
            self.screen.set_cursor_visible(False)
            self.screen.flush()
            try:
                self._loop()
            finally:
                self._restore_screen()

    def _loop(self) -> None:
        while True:
            self._discard_external_output()
            self.screen.clear()
            self.screen.flush()
            if self.nav.is_past_end(len(self.deck)):
                logger.debug("past the last slide, stopping")
                break

            self.render_current()
            self.screen.flush()

            data = self.terminal.poll_input()
            if data is None:
                self._handle_resize()
                continue
            if not self.step(data):
                break

    def render_current(self) -> None:
        slide = self.deck.get(self.nav.index)
        if slide is None:
            return
        logger.debug("rendering slide %d (%s)", self.nav.index + 1, slide.type)
        try:
            renderer_for(slide).render(self.screen, self.ctx)
        except RenderError as exc:
            if exc.slide_index is None:
                exc.slide_index = self.nav.index
            raise

    def step(self, data: str) -> bool:
        """Apply one raw input. Returns ``False`` when the loop should stop."""
        action = self.keybindings.resolve(data)
        if action == "quit":
            logger.debug("quit requested")
            return False
        if action == "advance":
            self.nav.advance()
        elif action == "retreat":
            self.nav.retreat()
        else:
            return True
        logger.debug("slide index now %d", self.nav.index)
        return True

    def _handle_resize(self) -> None:
        columns, rows = self.terminal.columns, self.terminal.rows
        logger.debug("terminal resized to %dx%d", columns, rows)
        self.screen.resize(columns, rows)

    def _discard_external_output(self) -> None:
        if self.screen.external_output:
            self.screen.invalidate()

    def _restore_screen(self) -> None:
        try:
            self._discard_external_output()
            self.screen.clear()
            self.screen.set_cursor_visible(True)
            self.screen.flush()
        except OSError:
            logger.warning("could not clear the screen on exit", exc_info=True)
