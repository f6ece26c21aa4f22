"""Account persistence: ORM model, engine/session wiring, store helpers."""
