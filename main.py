"""
KIPU Evaluation Codec Entry Point

Run with: uvicorn main:app --reload --port 8000
Or: python main.py
"""

from kipu_codec.app import app

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("kipu_codec.app:app", host="0.0.0.0", port=8000, reload=True)
