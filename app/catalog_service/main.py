# catalog_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Catalog Service (dev mock)")


ITEMS = {
    1: {"id": 1, "tenant_id": 1, "name": "Keyboard", "price": "199.99", "weight_kg": "0.900", "currency_id": 1, "available": True},
    2: {"id": 2, "tenant_id": 1, "name": "Mouse", "price": "49.50", "weight_kg": "0.150", "currency_id": 1, "available": True},
    3: {"id": 3, "tenant_id": 1, "name": "Monitor", "price": "899.00", "weight_kg": "6.500", "currency_id": 1, "available": True},
    4: {"id": 4, "tenant_id": 1, "name": "Webcam", "price": "79.00", "weight_kg": "0.200", "currency_id": 1, "available": False},
    5: {"id": 5, "tenant_id": 2, "name": "T-shirt", "price": "20.00", "weight_kg": "0.250", "currency_id": 2, "available": True},
}

CURRENCIES = {
    1: {"id": 1, "code": "usd", "symbol": "$"},
    2: {"id": 2, "code": "eur", "symbol": "€"},
    3: {"id": 3, "code": "pln", "symbol": "zł"},
}


@app.get("/items/{item_id}")
def get_item(item_id: int):
    item = ITEMS.get(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@app.get("/currencies/{currency_id}")
def get_currency(currency_id: int):
    currency = CURRENCIES.get(currency_id)
    if not currency:
        raise HTTPException(status_code=404, detail="Currency not found")
    return currency
