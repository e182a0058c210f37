from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    log_level: str = "INFO"  # The logging level to use.
    read_chunk_size: int = Field(65536, description="Bytes read from the input file per chunk.")
    end_without_subtitle_tracks: bool = Field(
        True, description="Stop decoding a file once its Tracks element turns out to have no subtitle tracks."
    )
    output_dir: str = "."  # Default directory for extracted subtitles and attachments.
    max_buffered_element_size: int = Field(
        64 * 1024 * 1024, description="Largest Tracks, BlockGroup or AttachedFile element held in memory, in bytes."
    )

    class Config:
        env_file = ".env"
        env_prefix = "MKVSUBS_"
        extra = "ignore"


settings = Settings()
