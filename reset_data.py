"""
reset_data.py
-------------
Utility script to clear all stored data (users, items, loans) from the local data.pkl file.

This script is designed for development and testing purposes.
It empties the Store, then saves it back to disk.

Usage:
    $ python reset_data.py

After running this script, you can repopulate sample data by executing:
    $ python seeds.py
"""

from librarian.models.store import Store


def main():
    store = Store.instance()
    store.clear()
    store.save()

    print("✅ data.pkl has been successfully cleared.")
    print("💡 Tip: Run `python seeds.py` to regenerate demo data.")


if __name__ == "__main__":
    main()
