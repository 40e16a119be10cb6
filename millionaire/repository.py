"""
Historical Draw Repository for Millionaire Maker

Fetches draw history from the Millionaire Maker data API and normalizes it
into a date-sorted DataFrame. Rows with the wrong number of distinct main
numbers are dropped here so every statistic downstream sees valid draws only.

Frame schema:
    date, num1..numK (ascending), grand, bonus
"""
import os
import re

import numpy as np
import pandas as pd
import requests

from millionaire.config import API_URL, CSV_TEMPLATE, DATA_DIR, REQUEST_TIMEOUT
from millionaire.games import get_game


def fetch_draws(game_id, api_url=API_URL, timeout=REQUEST_TIMEOUT):
    """
    Fetch all historical draws for a game from the data API.

    Returns the raw rows: a list of {date, main, grand, bonus} dicts.
    Raises requests.HTTPError on a non-2xx response.
    """
    url = f"{api_url.rstrip('/')}/api/data/{game_id}"
    resp = requests.get(url, timeout=timeout)
    resp.raise_for_status()
    return resp.json()


def _parse_main(value):
    """Accept a list of ints or the database's "{1,2,3}" string form."""
    if isinstance(value, str):
        return [int(tok) for tok in re.findall(r"\d+", value)]
    if value is None:
        return []
    return [int(n) for n in value]


def _is_valid_main(main, game):
    if len(main) != game.standard_size or len(set(main)) != game.standard_size:
        return False
    return all(1 <= n <= game.range for n in main)


def _optional_int(value):
    if value is None:
        return pd.NA
    try:
        if pd.isna(value):
            return pd.NA
    except (TypeError, ValueError):
        pass
    return int(value)


def draws_to_frame(rows, game):
    """
    Normalize raw draw rows into the working frame.

    Invalid rows (wrong cardinality, duplicates, out-of-range numbers,
    unparseable dates) are dropped. The result is sorted ascending by date.
    """
    num_cols = game.num_cols
    records = []
    for row in rows:
        try:
            main = _parse_main(row.get("main"))
            date = pd.Timestamp(row.get("date"))
        except (TypeError, ValueError):
            continue
        if pd.isna(date) or not _is_valid_main(main, game):
            continue
        record = {"date": date}
        for col, n in zip(num_cols, sorted(main)):
            record[col] = n
        record["grand"] = _optional_int(row.get("grand"))
        record["bonus"] = _optional_int(row.get("bonus"))
        records.append(record)

    columns = ["date"] + num_cols + ["grand", "bonus"]
    df = pd.DataFrame(records, columns=columns)
    df["date"] = pd.to_datetime(df["date"])
    for col in num_cols:
        df[col] = df[col].astype(int)
    df["grand"] = df["grand"].astype("Int64")
    df["bonus"] = df["bonus"].astype("Int64")
    return df.sort_values("date", kind="stable").reset_index(drop=True)


def main_numbers(df, game):
    """Return one ascending tuple of main numbers per draw."""
    return [tuple(int(n) for n in row) for row in df[game.num_cols].to_numpy()]


def main_matrix(df, game):
    """Return an (n_draws, standard_size) int array, each row ascending."""
    if len(df) == 0:
        return np.zeros((0, game.standard_size), dtype=int)
    return np.sort(df[game.num_cols].to_numpy(dtype=int), axis=1)


# ── CSV cache ────────────────────────────────────────────────────────────

def csv_path(game_id, data_dir=DATA_DIR):
    return os.path.join(data_dir, CSV_TEMPLATE.format(game_id=game_id))


def save_draws(df, game, data_dir=DATA_DIR):
    """Write the working frame to the game's CSV cache."""
    os.makedirs(data_dir, exist_ok=True)
    path = csv_path(game.game_id, data_dir)
    df.to_csv(path, index=False, date_format="%Y-%m-%d")
    return path


def load_csv(game, data_dir=DATA_DIR):
    """Load a cached frame and re-validate it."""
    raw = pd.read_csv(csv_path(game.game_id, data_dir))
    rows = []
    for _, row in raw.iterrows():
        rows.append({
            "date": row.get("date"),
            "main": [row.get(c) for c in game.num_cols if not pd.isna(row.get(c))],
            "grand": row.get("grand"),
            "bonus": row.get("bonus"),
        })
    return draws_to_frame(rows, game)


def load_draws(game_id, api_url=API_URL, data_dir=DATA_DIR, use_cache=True, verbose=True):
    """
    Load the working frame for a game.

    Tries the API first and refreshes the CSV cache on success. If the API is
    unreachable and a cache exists, the cached draws are used instead.
    """
    game = get_game(game_id)
    try:
        rows = fetch_draws(game_id, api_url=api_url)
    except requests.RequestException as e:
        path = csv_path(game_id, data_dir)
        if not use_cache or not os.path.exists(path):
            raise
        if verbose:
            print(f"[Repository] API fetch failed ({e}); using cached {path}")
        return load_csv(game, data_dir)

    df = draws_to_frame(rows, game)
    dropped = len(rows) - len(df)
    if verbose:
        print(f"[Repository] Loaded {len(df)} valid draws for {game_id}"
              + (f" ({dropped} malformed rows dropped)" if dropped else ""))
    if use_cache:
        save_draws(df, game, data_dir)
    return df
