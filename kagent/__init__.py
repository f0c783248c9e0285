"""
kagent - Agent platform controller API and autogen client

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- config: Environment-driven configuration
- storage: Redis connection ownership
- store: Kubernetes-style object store
- modelconfig: ModelConfig CRUD HTTP handlers
- sse: Server-Sent Events decoding
- client: Autogen studio API client
"""

__version__ = "0.1.0"
