"""
Services Module

Contains all business logic services with the hybrid architecture pattern.
Each external collaborator has a Mock (development) and a Real
(staging/production) implementation selected by a cached factory.

Services:
    - delivery: delivery quoting (postcode-prefix and distance-band rules)
    - availability: opening status and bookable collection/delivery times
    - config_store: store configuration from a JSON seed or the database
    - geo: Mapbox / Google Maps geocoding and driving distance
    - notifications: SendGrid order confirmation emails
    - cart: in-memory TTL cart store
"""
