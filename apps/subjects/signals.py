import logging

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from apps.subjects.models import Subject

logger = logging.getLogger(__name__)

AVAILABLE_SUBJECTS_CACHE_KEY = "subjects:available"


def clear_available_subjects_cache():
    """Invalide le catalogue des sujets disponibles"""
    cache.delete(AVAILABLE_SUBJECTS_CACHE_KEY)
    logger.debug("cache invalidé: %s", AVAILABLE_SUBJECTS_CACHE_KEY)


# tout ajout/modification/suppression de sujet, y compris les compteurs
@receiver(post_save, sender=Subject)
@receiver(post_delete, sender=Subject)
def handle_subject_change(sender, instance, **kwargs):
    clear_available_subjects_cache()
