"""
Application layer - Application Business Rules.

This layer contains application-specific business rules, including:
- Interfaces (ports) for infrastructure dependencies
- The authorization policy engine and the scoped data gateway
- Tenant resolution, identity binding and provisioning services
"""
