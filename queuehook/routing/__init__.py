"""queuehook routing — target resolution, request building, and dispatch.

A decoded envelope flows through three steps here: the resolver picks
the destination URI, the builder shapes a JSON or multipart request, and
the dispatcher sends it and reads back the delivery identifier.
"""
