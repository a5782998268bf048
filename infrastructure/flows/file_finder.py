"""Find flow files by flow id."""
from pathlib import Path
from typing import List, Optional

_PRIORITY = [".json", ".yaml", ".yml"]


class FlowFileFinder:
    """Search flow files under the given base directory."""

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def find_by_id(self, flow_id: str) -> Optional[Path]:
        """
        Find a flow file by flow id.

        Args:
            flow_id: Flow id (e.g., "create_goal")

        Returns:
            The Path if found, otherwise None.
        """
        candidates: List[Path] = []

        # .json wins over YAML when both exist for the same flow id.
        for ext in _PRIORITY:
            filename = f"{flow_id}{ext}"
            for file_path in self.base_dir.rglob(filename):
                if file_path.is_file():
                    candidates.append(file_path)

        if not candidates:
            return None

        candidates.sort(key=lambda path: (_PRIORITY.index(path.suffix), str(path)))
        return candidates[0]

    def list_ids(self) -> List[str]:
        ids = {
            p.stem
            for p in self.base_dir.rglob("*")
            if p.is_file() and p.suffix in _PRIORITY
        }
        return sorted(ids)
