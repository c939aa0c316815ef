# Middleware package init
"""
HeartSmiles Backend — Middleware Package
==========================================

What:  The admission pipeline every request traverses.

Middleware Chain (order matters!):
    Request → [Security Headers] → [Request ID] → [Logging]
            → [Error Responder] → [CORS] → [Error Responder] → [Rate Limit]
            → [Body Decoding] → [Path Normalizer] → Route Handler

    Why this order:
    1. Security headers and request ID wrap everything, error responses included
    2. Logging sits outside the Error Responder so it sees the final status
    3. CORS before rate limiting: a blocked origin never consumes budget
    4. The inner Error Responder renders failures inside CORS, so allowed
       origins can read error bodies; the outer one renders CORS rejections
    5. Body decoding before routing: collaborators get decoded bodies
    6. Path normalization last, right before the router reads the path
"""
