"""
media — external image hosting for avatars and cover images.

Provides:
  • ``MediaHost`` interface (upload / delete)
  • ``CloudinaryHost`` implementation over the Cloudinary REST API
  • ``staged_uploads`` for scoped temp-file staging of multipart files
"""
