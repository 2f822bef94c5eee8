#!/usr/bin/env python3
"""
Simple demo of a Kaska broker, producer and consumer in one process.
"""

from kaska.broker import BrokerServer
from kaska.client import KaskaClient


def main():
    print("=" * 60)
    print("Kaska - Simple Producer/Consumer Demo")
    print("=" * 60)

    print("\n[1] Starting broker...")
    server = BrokerServer(host="127.0.0.1", port=0)
    server.start()
    print(f"Broker listening on {server.endpoint()}")

    producer = KaskaClient.connect("127.0.0.1", server.port)
    consumer = KaskaClient.connect("127.0.0.1", server.port)

    try:
        print("\n[2] Creating topic 'demo-topic'...")
        producer.create_one_topic("demo-topic")
        consumer.subscribe_one_topic("demo-topic")

        print("\n[3] Producing 10 messages...")
        for i in range(10):
            ok = producer.send("demo-topic", {"id": i, "data": f"Hello from Kaska! Message #{i}"})
            print(f"  sent message {i}: {ok}")

        print("\n[4] Polling...")
        for record in consumer.poll():
            print(f"  offset={record.offset} value={consumer.deserialize(record)}")

        print(f"\nConsumer position: {consumer.position('demo-topic')}")
        print(f"Second poll returned {len(consumer.poll())} records")

    finally:
        producer.close()
        consumer.close()
        server.stop()


if __name__ == '__main__':
    main()
