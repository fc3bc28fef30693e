"""Development launcher."""
import uvicorn

if __name__ == "__main__":
    uvicorn.run("lookout.main:app", host="0.0.0.0", port=8000, reload=True)
