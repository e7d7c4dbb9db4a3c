"""
Higher-level methods to operate the local database server.

Each public function in this module should:

- perform a complete operation, as needed by a script
- re-check any precondition on external state immediately before acting on it
- create and manage contexts for any resources needed by plumbing
"""
