import os
from dotenv import load_dotenv
from telemed import create_app
from telemed.config.config import env_flag

# Load environment variables
load_dotenv()

# Configuration name, development by default
config_name = os.getenv('FLASK_ENV', 'development')

# Create the application
app = create_app(config_name)

if __name__ == "__main__":
    # Listen on all interfaces unless HOST says otherwise
    host = os.getenv('HOST', '0.0.0.0')
    port = int(os.getenv('PORT', 5000))
    # Debug follows the configuration name unless FLASK_DEBUG is set
    debug = env_flag('FLASK_DEBUG', config_name == 'development')

    app.run(host=host, port=port, debug=debug)
