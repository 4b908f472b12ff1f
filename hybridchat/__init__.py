"""
HybridChat

A console-based point-to-point encrypted chat implementing:
- RSA-2048 key pairs with OAEP session-key transport
- AES-256-CBC message encryption with HMAC-SHA256 tags
- Length-prefixed binary framing over TCP
"""

__version__ = "1.0.0"
