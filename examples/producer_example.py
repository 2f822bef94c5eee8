#!/usr/bin/env python3
"""
Producer example: sends a stream of JSON messages to a topic.
"""

import argparse
import time

from kaska.client import JsonSerializer, KaskaClient
from kaska.utils.config import get_config


def main():
    parser = argparse.ArgumentParser(description='Kaska Producer Example')
    parser.add_argument('--config', help='Configuration file path')
    parser.add_argument('--host', help='Broker host (default: broker.host from config)')
    parser.add_argument('--port', type=int, help='Broker port (default: broker.port from config)')
    parser.add_argument('--service-name', help='Broker service name (default: broker.service_name from config)')
    parser.add_argument('--topic', default='test-topic', help='Topic name')
    parser.add_argument('--messages', type=int, default=100, help='Number of messages to send')
    parser.add_argument('--rate', type=int, default=10, help='Messages per second')
    args = parser.parse_args()

    print(f"Producing {args.messages} messages to topic '{args.topic}' at {args.rate} msg/sec")

    get_config(args.config)
    client = KaskaClient.connect(
        args.host,
        args.port,
        service_name=args.service_name,
        serializer=JsonSerializer(),
    )

    delay = 1.0 / args.rate

    try:
        if client.create_one_topic(args.topic):
            print(f"Created topic '{args.topic}'")

        for i in range(args.messages):
            message = {
                'id': i,
                'timestamp': int(time.time() * 1000),
                'value': f'Message number {i}',
            }

            if not client.send(args.topic, message):
                print(f"Failed to send message {i}")

            if (i + 1) % 10 == 0:
                print(f"Sent {i + 1} messages...")

            time.sleep(delay)

        end = client.end_offsets([args.topic])
        print(f"\n[OK] Sent {args.messages} messages, end offsets: {end}")

    finally:
        client.close()


if __name__ == '__main__':
    main()
