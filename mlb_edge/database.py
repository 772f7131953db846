"""
SQLite game store for scheduled games and their predictions.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path

from mlb_edge.config import settings
from mlb_edge.models import Game, Prediction

_PREDICTION_COLUMNS = (
    "game_id", "home_team_win_probability", "away_team_win_probability",
    "predicted_total_runs", "recommended_bet", "confidence_level", "analysis",
    "tier", "is_value_bet", "model_version", "created_at",
)


class SQLiteGameStore:
    """Game store backed by a single SQLite file."""

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or settings.DB_PATH

    def _ensure_dir(self):
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def get_connection(self) -> sqlite3.Connection:
        self._ensure_dir()
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def get_db(self):
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init_db(self):
        """Create tables if they don't exist."""
        with self.get_db() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS games (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    mlb_id TEXT NOT NULL UNIQUE,
                    home_team TEXT NOT NULL,
                    away_team TEXT NOT NULL,
                    home_team_abbreviation TEXT NOT NULL,
                    away_team_abbreviation TEXT NOT NULL,
                    home_team_record TEXT,           -- "W-L"
                    away_team_record TEXT,
                    home_team_moneyline INTEGER,     -- American odds
                    away_team_moneyline INTEGER,
                    start_time TEXT NOT NULL,
                    status TEXT DEFAULT 'scheduled',
                    game_date TEXT NOT NULL          -- YYYY-MM-DD
                );

                CREATE INDEX IF NOT EXISTS idx_games_date ON games(game_date);

                CREATE TABLE IF NOT EXISTS predictions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    game_id INTEGER NOT NULL REFERENCES games(id),
                    home_team_win_probability REAL NOT NULL,
                    away_team_win_probability REAL NOT NULL,
                    predicted_total_runs REAL,
                    recommended_bet TEXT NOT NULL,
                    confidence_level REAL NOT NULL,
                    analysis TEXT NOT NULL,
                    tier TEXT DEFAULT 'basic',       -- 'basic', 'pro', 'elite'
                    is_value_bet INTEGER NOT NULL DEFAULT 0,
                    model_version TEXT NOT NULL,     -- 'engine' or 'legacy'
                    created_at TEXT NOT NULL DEFAULT (datetime('now'))
                );

                CREATE INDEX IF NOT EXISTS idx_predictions_game ON predictions(game_id);
            """)

    # ── Games ─────────────────────────────────────────────────────────

    def get_game(self, game_id: int) -> Game | None:
        with self.get_db() as conn:
            row = conn.execute("SELECT * FROM games WHERE id = ?", (game_id,)).fetchone()
            return Game.model_validate(dict(row)) if row else None

    def get_games_by_date(self, date: str) -> list[Game]:
        with self.get_db() as conn:
            rows = conn.execute("""
                SELECT * FROM games WHERE game_date = ?
                ORDER BY start_time, id
            """, (date,)).fetchall()
            return [Game.model_validate(dict(r)) for r in rows]

    def create_game(self, game: Game) -> Game:
        """Insert a game and return it with its assigned id."""
        row = game.model_dump(exclude={"id"})
        with self.get_db() as conn:
            cursor = conn.execute("""
                INSERT INTO games
                (mlb_id, home_team, away_team, home_team_abbreviation,
                 away_team_abbreviation, home_team_record, away_team_record,
                 home_team_moneyline, away_team_moneyline, start_time, status, game_date)
                VALUES (:mlb_id, :home_team, :away_team, :home_team_abbreviation,
                        :away_team_abbreviation, :home_team_record, :away_team_record,
                        :home_team_moneyline, :away_team_moneyline, :start_time,
                        :status, :game_date)
            """, row)
            return game.model_copy(update={"id": cursor.lastrowid})

    # ── Predictions ───────────────────────────────────────────────────

    def get_prediction_by_game_id(self, game_id: int) -> Prediction | None:
        """Most recent prediction for a game."""
        with self.get_db() as conn:
            row = conn.execute("""
                SELECT * FROM predictions WHERE game_id = ?
                ORDER BY id DESC LIMIT 1
            """, (game_id,)).fetchone()
            return _prediction_from_row(row) if row else None

    def create_prediction(self, prediction: Prediction) -> Prediction:
        """Append a prediction row. Earlier predictions for the game are kept."""
        with self.get_db() as conn:
            return self._insert_prediction(conn, prediction)

    def upsert_prediction(self, prediction: Prediction) -> Prediction:
        """Replace any existing prediction for the game with this one."""
        with self.get_db() as conn:
            existing = conn.execute(
                "SELECT id FROM predictions WHERE game_id = ? ORDER BY id DESC LIMIT 1",
                (prediction.game_id,),
            ).fetchone()
            if existing is None:
                return self._insert_prediction(conn, prediction)

            row = _prediction_row(prediction)
            row["id"] = existing["id"]
            conn.execute("""
                UPDATE predictions
                SET home_team_win_probability = :home_team_win_probability,
                    away_team_win_probability = :away_team_win_probability,
                    predicted_total_runs = :predicted_total_runs,
                    recommended_bet = :recommended_bet,
                    confidence_level = :confidence_level,
                    analysis = :analysis,
                    tier = :tier,
                    is_value_bet = :is_value_bet,
                    model_version = :model_version,
                    created_at = :created_at
                WHERE id = :id
            """, row)
            # Older duplicates from append-only runs
            conn.execute(
                "DELETE FROM predictions WHERE game_id = ? AND id != ?",
                (prediction.game_id, existing["id"]),
            )
            return prediction.model_copy(update={"id": existing["id"]})

    def get_predictions_by_date(self, date: str) -> list[Prediction]:
        with self.get_db() as conn:
            rows = conn.execute("""
                SELECT p.* FROM predictions p
                JOIN games g ON g.id = p.game_id
                WHERE g.game_date = ?
                ORDER BY p.confidence_level DESC
            """, (date,)).fetchall()
            return [_prediction_from_row(r) for r in rows]

    @staticmethod
    def _insert_prediction(conn: sqlite3.Connection, prediction: Prediction) -> Prediction:
        cursor = conn.execute(f"""
            INSERT INTO predictions ({", ".join(_PREDICTION_COLUMNS)})
            VALUES ({", ".join(":" + c for c in _PREDICTION_COLUMNS)})
        """, _prediction_row(prediction))
        return prediction.model_copy(update={"id": cursor.lastrowid})


def _prediction_row(prediction: Prediction) -> dict:
    row = prediction.model_dump(include=set(_PREDICTION_COLUMNS))
    row["is_value_bet"] = int(row["is_value_bet"])
    return row


def _prediction_from_row(row: sqlite3.Row) -> Prediction:
    data = dict(row)
    data["is_value_bet"] = bool(data["is_value_bet"])
    return Prediction.model_validate(data)
