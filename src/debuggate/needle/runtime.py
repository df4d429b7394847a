import os
from pathlib import Path
from typing import Dict, List, Optional, Set, Union

from .loader import Loader
from .pointer import SemanticPointer

# Messages shipped with the package: debuggate/assets/needle/<lang>/*.json
PACKAGE_ASSETS = Path(__file__).resolve().parent.parent / "assets"


class Needle:
    """
    Resolves semantic pointers to message templates.
    """

    def __init__(self, roots: Optional[List[Path]] = None):
        self.default_lang = "en"
        self._registry: Dict[str, Dict[str, str]] = {}
        self._loader = Loader()
        self._loaded_langs: Set[str] = set()

        if roots is not None:
            self.roots = list(roots)
        else:
            self.roots = [PACKAGE_ASSETS, self._find_project_root()]

    def add_root(self, path: Path):
        """Adds a new search root to the beginning of the list."""
        if path not in self.roots:
            self.roots.insert(0, path)
            self._loaded_langs.clear()

    def _find_project_root(self, start_dir: Optional[Path] = None) -> Path:
        current_dir = (start_dir or Path.cwd()).resolve()
        while current_dir.parent != current_dir:
            if (current_dir / "pyproject.toml").is_file():
                return current_dir
            if (current_dir / ".git").is_dir():
                return current_dir
            current_dir = current_dir.parent
        return start_dir or Path.cwd()

    def _ensure_lang_loaded(self, lang: str):
        if lang in self._loaded_langs:
            return

        merged_registry: Dict[str, str] = {}

        # Earlier roots are defaults, later roots override them.
        for root in self.roots:
            hidden_path = root / ".debuggate" / "needle" / lang
            if hidden_path.is_dir():
                merged_registry.update(self._loader.load_directory(hidden_path))

            asset_path = root / "needle" / lang
            if asset_path.is_dir():
                merged_registry.update(self._loader.load_directory(asset_path))

        self._registry[lang] = merged_registry
        self._loaded_langs.add(lang)

    def get(
        self, pointer: Union[SemanticPointer, str], lang: Optional[str] = None
    ) -> str:
        """
        Resolves a semantic pointer to a string value with graceful fallback.

        Lookup Order:
        1. Target Language
        2. Default Language (en)
        3. Identity (the key itself)
        """
        key = str(pointer)
        target_lang = lang or os.getenv("DEBUGGATE_LANG", self.default_lang)

        self._ensure_lang_loaded(target_lang)
        val = self._registry.get(target_lang, {}).get(key)
        if val is not None:
            return val

        if target_lang != self.default_lang:
            self._ensure_lang_loaded(self.default_lang)
            val = self._registry.get(self.default_lang, {}).get(key)
            if val is not None:
                return val

        return key


needle = Needle()
