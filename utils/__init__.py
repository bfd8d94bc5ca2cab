# Utility modules for the provisioning engine
from .sanitizer import clean_item_name, clean_unit
