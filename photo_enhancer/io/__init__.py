# IO package initialization
from .codec import decode_image, encode_image, to_data_url

__all__ = [
    'decode_image',
    'encode_image',
    'to_data_url',
]
