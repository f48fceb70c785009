"""
chainsession Test Suite
=======================

Layout follows the package:
    tests/
    ├── test_core/           → chainsession.core (config, models, exceptions)
    ├── test_orchestration/  → store, serializer, event stream, history, sink
    ├── test_infrastructure/ → artifact registry
    ├── test_integrations/   → chain interface and MockChain
    ├── test_operations/     → deploy, invoke, dispose
    ├── test_integration/    → end-to-end sessions
    ├── test_facade.py       → ContractSession
    └── conftest.py          → shared fixtures and artifact documents

Running Tests:
    pytest
    pytest tests/test_operations/
"""
