"""JSON file storage for the mirror playlist ID between runs."""

import json
from pathlib import Path
from typing import Dict


class StateStoreError(Exception):
    """Exception raised when the state file cannot be read."""
    pass


def default_state() -> Dict:
    return {'playlist_id': None}


class StateStore:
    """Reads and writes state/state.json ({"playlistId": ...} on disk)."""

    def __init__(self, state_file_path: str):
        self.state_file_path = Path(state_file_path)

    def read(self) -> Dict:
        """
        Load the persisted state, creating the file with defaults if missing.

        Returns:
            Dict with key playlist_id (str or None)

        Raises:
            StateStoreError: If the file exists but is not valid JSON
        """
        if not self.state_file_path.exists():
            state = default_state()
            self.write(state)
            return state

        try:
            raw = self.state_file_path.read_text(encoding='utf-8')
            parsed = json.loads(raw)
        except (OSError, ValueError) as e:
            raise StateStoreError(f"Failed to read state file ({self.state_file_path}): {e}") from e

        playlist_id = parsed.get('playlistId') if isinstance(parsed, dict) else None
        return {
            'playlist_id': playlist_id if isinstance(playlist_id, str) and playlist_id else None
        }

    def write(self, state: Dict) -> None:
        """Persist `state`, creating parent directories as needed."""
        self.state_file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.state_file_path, 'w', encoding='utf-8') as f:
            json.dump({'playlistId': state.get('playlist_id')}, f, indent=2)
            f.write('\n')
