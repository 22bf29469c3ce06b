"""
Configuration du logging de l'application via loguru.

Deux sorties :
- console : colorée, niveau réglable par -v / -q
- fichier : JSON avec rotation, tous les niveaux à partir de DEBUG

Chaque ligne porte l'opération en cours (champ extra "operation",
positionné par l'OperationScheduler) : les traces d'un cycle du daemon
restent regroupables dans le fichier JSON.
"""

import sys
from pathlib import Path

from loguru import logger

NO_OPERATION = "-"

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[operation]}</magenta> | "
    "<cyan>{name}</cyan> | "
    "<level>{message}</level>"
)

# Niveau console selon -v / -q
_VERBOSITY_LEVELS = {0: None, 1: "INFO", 2: "DEBUG"}


def resolve_console_level(log_level: str, verbose: int = 0, quiet: bool = False) -> str:
    """Niveau console effectif : -q force ERROR, -v/-vv/-vvv abaissent le niveau configuré."""
    if quiet:
        return "ERROR"
    if verbose >= 3:
        return "TRACE"
    return _VERBOSITY_LEVELS.get(verbose) or log_level.upper()


def configure_logging(
    log_level: str = "INFO",
    log_file: Path = Path("logs/seerbridge.log"),
    rotation_size: str = "10 MB",
    retention_count: int = 5,
) -> None:
    """Configure le logging de l'application.

    Args :
        log_level : Niveau minimum de la console (TRACE, DEBUG, INFO, WARNING, ERROR)
        log_file : Fichier JSON
        rotation_size : Taille maximale avant rotation (ex: "10 MB")
        retention_count : Nombre de fichiers rotatifs conservés
    """
    logger.remove()
    logger.configure(extra={"operation": NO_OPERATION})

    logger.add(sys.stderr, level=log_level, format=_CONSOLE_FORMAT, colorize=True)

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level="DEBUG",
        format="{message}",
        serialize=True,
        rotation=rotation_size,
        retention=retention_count,
        compression="zip",
        enqueue=True,
    )

    logger.debug("Logging configuré", log_file=str(log_file), console_level=log_level)
