"""
Test Suite

Structure:
    tests/
    ├── conftest.py                 # Shared fixtures (in-memory store, actors, HTTP clients)
    ├── test_transition_table.py    # Legal edges, queues derived from the table
    ├── test_record_store.py        # Units of work on the in-memory store
    ├── test_mongo_store.py         # Mongo store against mocked pymongo
    ├── test_engine.py              # Transitions, owner operations, history
    ├── test_concurrency.py         # Racing actions on one record
    ├── test_promotion.py           # Inventory promotion atomicity
    ├── test_price_appeals.py       # Appeal filing and approval
    ├── test_queue_service.py       # Approval queues
    ├── test_settings_service.py    # Platform settings
    ├── test_api.py                 # HTTP surface
    └── test_client_sync.py         # Client, sync policies, retries

To run tests:
    pytest backend/tests/
"""
