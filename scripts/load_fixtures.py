import argparse, logging, pathlib, sys

import pandas as pd
from sqlalchemy import create_engine

from barometre.services.sql_safety import ALLOWLIST

log = logging.getLogger("load_fixtures")

DATE_COLUMNS = ("date", "month", "datetime")

def read_csv(path, **kw):
    return pd.read_csv(path, na_values=["", "null", "None"], keep_default_na=True, **kw)

def parse_dates(df, cols=DATE_COLUMNS):
    for c in cols:
        if c in df.columns:
            df[c] = pd.to_datetime(df[c], errors="coerce")
    return df

def select_csvs(csv_dir: pathlib.Path):
    """<table>.csv files whose table is one the API reads; others are skipped."""
    picked = []
    for path in sorted(csv_dir.glob("*.csv")):
        if path.stem in ALLOWLIST:
            picked.append(path)
        else:
            log.warning("file=%s status=skipped reason=unknown_table", path.name)
    return picked

def load_tables(csv_dir: pathlib.Path, db_uri: str, schema=None):
    csv_dir = csv_dir.expanduser().resolve()
    if not csv_dir.exists():
        print(f"[ERROR] CSV directory not found: {csv_dir}", file=sys.stderr)
        sys.exit(2)

    if db_uri.startswith("sqlite:///"):
        pathlib.Path(db_uri.replace("sqlite:///", "", 1)).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(db_uri)
    loaded = {}
    with engine.begin() as con:
        for path in select_csvs(csv_dir):
            df = parse_dates(read_csv(path))
            unknown = set(df.columns) - set(ALLOWLIST[path.stem])
            if unknown:
                log.warning("table=%s extra_columns=%s", path.stem, sorted(unknown))
            df.to_sql(path.stem, con, schema=schema, if_exists="replace", index=False)
            loaded[path.stem] = len(df)
            log.info("table=%s rows=%d", path.stem, len(df))
    engine.dispose()
    print(f"[OK] Loaded {len(loaded)} tables into {db_uri}")
    return loaded

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    ap = argparse.ArgumentParser(description="Load CSV exports of the analytics tables")
    ap.add_argument("--csv_dir", required=True, help="directory holding <table>.csv files")
    ap.add_argument("--db", default="sqlite:///data/warehouse/barometre.db")
    ap.add_argument("--schema", default=None, help="target schema, e.g. analytics (PostgreSQL)")
    args = ap.parse_args()
    load_tables(pathlib.Path(args.csv_dir), args.db, args.schema)
