"""
Platebase — Services Layer
============================

Service Inventory:
    - image_codec:    raw photo bytes <-> base64 / data URI
    - dish_validator: field rules for create, create-or-update, partial-update
    - dish_service:   list, create-or-replace, get, update, delete
"""
