#!/usr/bin/env python3
"""
Consumer example: polls a topic and prints every new message.
"""

import argparse
import time

from kaska.client import JsonSerializer, KaskaClient, SerializationError
from kaska.utils.config import get_config


def main():
    parser = argparse.ArgumentParser(description='Kaska Consumer Example')
    parser.add_argument('--config', help='Configuration file path')
    parser.add_argument('--host', help='Broker host (default: broker.host from config)')
    parser.add_argument('--port', type=int, help='Broker port (default: broker.port from config)')
    parser.add_argument('--service-name', help='Broker service name (default: broker.service_name from config)')
    parser.add_argument('--topic', default='test-topic', help='Topic name')
    parser.add_argument('--from-offset', type=int, default=0, help='Offset to start reading at')
    parser.add_argument('--interval', type=float, default=1.0, help='Seconds between polls')
    args = parser.parse_args()

    print(f"Consuming from topic '{args.topic}' starting at offset {args.from_offset}")
    print("Press Ctrl+C to stop...\n")

    get_config(args.config)
    client = KaskaClient.connect(
        args.host,
        args.port,
        service_name=args.service_name,
        serializer=JsonSerializer(),
    )
    client.subscribe_one_topic(args.topic)
    client.seek(args.topic, args.from_offset)

    message_count = 0

    try:
        while True:
            for record in client.poll():
                try:
                    print(f"[Offset {record.offset}] {client.deserialize(record)}")
                except SerializationError as e:
                    print(f"[Offset {record.offset}] Error decoding message: {e}")
                message_count += 1

            time.sleep(args.interval)

    except KeyboardInterrupt:
        print(f"\n\nConsumed {message_count} messages total, "
              f"next offset {client.position(args.topic)}")

    finally:
        client.close()


if __name__ == '__main__':
    main()
