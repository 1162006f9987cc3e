import logging

from django.db.models.signals import post_delete
from django.dispatch import receiver

from .models import Deliverable

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=Deliverable)
def delete_deliverable_file(sender, instance, **kwargs):
    """Supprime le fichier stocké, y compris lors d'une suppression en cascade.

    Args:
        sender (Model): Deliverable.
        instance (Deliverable): livrable supprimé.
        **kwargs: arguments du signal.
    """
    if instance.file:
        instance.file.delete(save=False)
        logger.debug("Fichier %s supprimé du stockage", instance.file_name)
