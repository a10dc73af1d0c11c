"""
messaging/ - Messaging Gateway
===============================
Outbound and media calls to the WhatsApp Cloud API.
Services depend on this layer; it depends on nothing but `utils`.
"""
