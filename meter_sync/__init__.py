"""
meter-sync root module

Synchronizes energy meter history from provider APIs into Home Assistant
long-term statistics, along with cost series computed from pricing rules.

Layer Structure:
- Domain: Entities, gateway interfaces and the reconciliation services
- Application: Use cases and DTOs
- Infrastructure: Provider APIs, Home Assistant and local files
- Shared: Cross-cutting concerns such as logging
- Main: Composition root, settings and worker entry point
"""
