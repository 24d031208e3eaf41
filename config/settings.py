"""
KENOLAB — Configuration & Logging

Constants of the game (80 balls, 20 drawn, up to 20 spots marked) and the
runtime knobs that only affect output: where the report lands, how it is
named, how many decimals it shows and how chatty the log is.

Everything tunable reads from the environment (a local .env is honoured):
    KENO_OUTPUT_DIR    report directory          (default ./Data)
    KENO_OUTPUT_NAME   report file basename      (default Keno)
    KENO_LOG_LEVEL     console log level         (default INFO)
    KENO_PRECISION     decimals in the report    (default 10)
    KENO_MC_ROUNDS     Monte Carlo rounds        (default 200000)
    KENO_MC_SEED       Monte Carlo seed          (default 42)
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

OUTPUT_DIR = Path(os.getenv("KENO_OUTPUT_DIR", "./Data"))


class KenoConfig:

    # --- Game constants (never read from env) ---
    TOTAL_BALLS = 80          # balls numbered 1..80
    DRAWN_BALLS = 20          # balls the machine draws each game
    MAX_SPOTS = 20            # most numbers a player may mark
    MAX_CATCH = 20            # most balls a player can catch
    PAYOUT_SPOTS = 9          # payout sheet covers 1..9 spots marked

    # --- Output ---
    OUTPUT_NAME = os.getenv("KENO_OUTPUT_NAME", "Keno")
    PRECISION = int(os.getenv("KENO_PRECISION", "10"))
    LOG_LEVEL = os.getenv("KENO_LOG_LEVEL", "INFO").upper()

    # --- Monte Carlo cross-check ---
    MC_ROUNDS = int(os.getenv("KENO_MC_ROUNDS", "200000"))
    MC_SEED = int(os.getenv("KENO_MC_SEED", "42"))
    MC_Z_SCORE = 5.0          # allowed deviation per catch count, in standard errors

    @classmethod
    def output_dir(cls, override=None) -> Path:
        """Resolve the report directory: explicit override, then env, then ./Data."""
        if override:
            return Path(override)
        return Path(os.getenv("KENO_OUTPUT_DIR", str(OUTPUT_DIR)))


LOG_FORMAT = "[%(asctime)s] %(levelname)s %(message)s"


def configure_logging(level: str = None, debug_log: str = None) -> logging.Logger:
    """Attach handlers to the ``kenolab`` logger tree.

    The console handler follows ``level``. When ``debug_log`` is given every
    DEBUG trace (each probability cell, each expected-value term) is also
    written to that file.
    """
    logger = logging.getLogger("kenolab")
    level = (level or KenoConfig.LOG_LEVEL).upper()
    close_debug_log(logger)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
               for h in logger.handlers):
        _h = logging.StreamHandler()
        _h.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(_h)
    for h in logger.handlers:
        if not isinstance(h, logging.FileHandler):
            h.setLevel(getattr(logging, level, logging.INFO))

    if debug_log:
        fh = logging.FileHandler(debug_log, mode="w", encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        fh.setLevel(logging.DEBUG)
        logger.addHandler(fh)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(getattr(logging, level, logging.INFO))

    return logger


def close_debug_log(logger: logging.Logger = None):
    """Close and detach every trace file handler on the ``kenolab`` logger."""
    logger = logger or logging.getLogger("kenolab")
    for h in list(logger.handlers):
        if isinstance(h, logging.FileHandler):
            h.close()
            logger.removeHandler(h)
