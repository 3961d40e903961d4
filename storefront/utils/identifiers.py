# module storefront.utils.identifiers
"""
Génération d'identifiants courts et lisibles (numéros de commande, suffixes de slug).

- mint(): préfixe + N caractères tirés d'un alphabet sans caractères ambigus (pas de 0/O/1/I)
- generate_unique(check, max_attempts): boucle mint + vérification; ExhaustedAttempts au-delà
- insert_with_unique(...): la contrainte d'unicité du datastore fait foi; une violation
  à l'insertion est une collision à rejouer, pas une erreur fatale
"""
import logging
import secrets
from typing import Callable, Optional, TypeVar

from storefront import config
from storefront.utils.errors import DuplicateKeyError, ExhaustedAttempts

logger = logging.getLogger(__name__)

ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

T = TypeVar("T")


def mint(prefix: Optional[str] = None, length: Optional[int] = None, alphabet: str = ALPHABET) -> str:
    prefix = config.ORDER_NUMBER_PREFIX if prefix is None else prefix
    length = config.ORDER_NUMBER_LENGTH if length is None else length
    return prefix + "".join(secrets.choice(alphabet) for _ in range(length))


def generate_unique(
    check: Callable[[str], bool],
    max_attempts: Optional[int] = None,
    minter: Callable[[], str] = mint,
) -> str:
    """
    Retourne le premier candidat pour lequel check(candidate) est False (= libre).
    - check: True si le candidat existe déjà dans le datastore
    - Lève ExhaustedAttempts après max_attempts collisions consécutives
    """
    attempts = config.ORDER_NUMBER_MAX_ATTEMPTS if max_attempts is None else max_attempts
    for attempt in range(1, attempts + 1):
        candidate = minter()
        if not check(candidate):
            return candidate
        logger.info("identifiers.collision attempt=%s candidate=%s", attempt, candidate)
    logger.warning("identifiers.exhausted attempts=%s", attempts)
    raise ExhaustedAttempts()


def insert_with_unique(
    check: Callable[[str], bool],
    insert: Callable[[str], T],
    max_attempts: Optional[int] = None,
    minter: Callable[[], str] = mint,
) -> T:
    """
    Constructeur à essais bornés: chaque essai génère un candidat, le vérifie puis tente
    l'insertion. Une collision à la vérification ou une DuplicateKeyError levée par insert()
    (course entre la vérification et l'écriture) consomme un essai.
    """
    attempts = config.ORDER_NUMBER_MAX_ATTEMPTS if max_attempts is None else max_attempts
    for attempt in range(1, attempts + 1):
        candidate = minter()
        if check(candidate):
            logger.info("identifiers.collision attempt=%s candidate=%s", attempt, candidate)
            continue
        try:
            return insert(candidate)
        except DuplicateKeyError as e:
            logger.info("identifiers.insert_collision attempt=%s candidate=%s table=%s", attempt, candidate, e.table)
    logger.warning("identifiers.exhausted attempts=%s (insert)", attempts)
    raise ExhaustedAttempts()
