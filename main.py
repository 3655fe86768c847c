# main.py
import logging

import uvicorn

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# Run the server
if __name__ == "__main__":
    uvicorn.run("idealab.dashboard:app", host="127.0.0.1", port=8000, reload=True)
