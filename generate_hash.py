import getpass
import sys

from storefront.utils.security import generate_hash

# Usage: python generate_hash.py [mot_de_passe]  -> valeur de ADMIN_PASSWORD_HASH
if __name__ == "__main__":
    secret = sys.argv[1] if len(sys.argv) > 1 else getpass.getpass("Admin password: ")
    print(f"ADMIN_PASSWORD_HASH={generate_hash(secret)}")
