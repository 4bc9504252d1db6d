# test_seed.py - Script de datos de ejemplo

from app.db.session import is_db_initialized, reset_db
from scripts.seed import SAMPLE_CLIENTS, seed, verify


def test_seed_inserts_samples_once(engine):
    inserted = seed(engine)
    assert len(inserted) == len(SAMPLE_CLIENTS)
    assert verify(engine) == {"valid": True, "errors": []}

    # segunda ejecución sin --clear: no duplica
    assert seed(engine) == []


def test_seed_clear_replaces_rows(engine):
    first = seed(engine)
    second = seed(engine, clear_first=True)
    assert len(second) == len(SAMPLE_CLIENTS)
    assert min(c.id for c in second) > max(c.id for c in first)


def test_seed_initializes_schema(engine):
    reset_db(engine)
    assert not is_db_initialized(engine)
    assert len(seed(engine)) == len(SAMPLE_CLIENTS)
    assert is_db_initialized(engine)
