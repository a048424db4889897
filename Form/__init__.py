from .Form import MULTIPART, URLENCODED, FileField, Form, SelectOptions

__all__ = ["MULTIPART", "URLENCODED", "FileField", "Form", "SelectOptions"]
