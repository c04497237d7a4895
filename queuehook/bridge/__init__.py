"""Broker bridge — connects the relay to its message queue via aio-pika."""
