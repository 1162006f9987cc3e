import os
import uuid


def generate_unique_filename(filename):
    """Nom de fichier unique : nom d'origine + UUID + extension."""
    name, ext = os.path.splitext(os.path.basename(filename))
    return f"{name}_{uuid.uuid4()}{ext}"
