"""presiterm: terminal slide-deck presenter."""

__version__ = "0.1.0"

from presiterm.config import PresenterConfig, load_config
from presiterm.deck import (
    CodeSlide,
    CommandSlide,
    Deck,
    ImageSlide,
    MarkdownSlide,
    Slide,
    TextSlide,
    load_deck,
    parse_deck,
)
from presiterm.errors import (
    ConfigError,
    DeckLoadError,
    InputError,
    PresitermError,
    RenderError,
)
from presiterm.presenter import Presenter
from presiterm.renderers import RenderContext, SlideRenderer, renderer_for
from presiterm.screen import ScreenBuffer
from presiterm.terminal import ProcessTerminal, Terminal

__all__ = [
    "__version__",
    # Deck
    "Deck",
    "Slide",
    "TextSlide",
    "MarkdownSlide",
    "ImageSlide",
    "CodeSlide",
    "CommandSlide",
    "load_deck",
    "parse_deck",
    # Errors
    "PresitermError",
    "ConfigError",
    "DeckLoadError",
    "RenderError",
    "InputError",
    # Config
    "PresenterConfig",
    "load_config",
    # Engine
    "Presenter",
    "RenderContext",
    "SlideRenderer",
    "renderer_for",
    "ScreenBuffer",
    "Terminal",
    "ProcessTerminal",
]
