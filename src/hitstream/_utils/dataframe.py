"""DataFrame conversion utilities."""

from typing import Iterable

import pandas as pd

from hitstream.batch import Match


def hits_to_dataframe(
    matches: Iterable[Match],
    include_index: bool = False,
) -> pd.DataFrame:
    """
    Convert an iterable of matches to a pandas DataFrame.

    Nested source objects are flattened into dotted column names.

    Args:
        matches: Iterable of Match (e.g., a SearchSession)
        include_index: If True, add an '_index' column with each match's index name

    Returns:
        pandas DataFrame with one row per match and an '_id' column first

    Example:
        df = hits_to_dataframe(client.session(SearchRequest(index="logs")))
        print(df.columns)  # Index(['_id', 'message', 'host.name'], ...)
    """
    rows = []
    for match in matches:
        row = {"_id": match.id}
        if include_index:
            row["_index"] = match.index
        row.update(match.source or {})
        rows.append(row)

    if not rows:
        return pd.DataFrame()

    return pd.json_normalize(rows)
