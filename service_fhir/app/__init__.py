"""
FHIR Facade service package.

The facade fronts a remote FHIR server for Patient and Observation
resources, enforcing:
- Authentication: HS256 bearer tokens issued by the login endpoint
- Read-through caching in Redis with a declarative TTL policy
- Synchronous cache invalidation on create, update and delete

Structure:
- app.main: FastAPI app, routes, and wiring.
- app.adapters: HTTP client for the FHIR server.
- app.services: Per-resource-type pass-throughs to the client.
- app.caching: Cache keys, TTL policy, Redis store and cache manager.
- app.domain: Request models, FHIR mapping and the resource facades.
- app.auth: Token validation and issuance.
"""
