"""
chainsession.integrations - External Collaborators
====================================================

Adapters for systems the session talks to but does not own. Currently the
chain backend (see integrations/chain/).
"""
