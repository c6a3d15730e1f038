FILLER_WORDS = {
    "uh", "um", "er", "ah", "like", "okay", "right", "so", "you know",
    "i mean", "basically", "actually", "well", "literally",
}

# multi-word fillers are matched as adjacent token pairs
MULTI_WORD_FILLERS = {phrase for phrase in FILLER_WORDS if " " in phrase}

POSITIVE_WORDS = {
    "good", "great", "excellent", "amazing", "awesome", "positive", "success",
    "benefit", "opportunity", "achieve", "effective", "efficient", "innovative",
}

NEGATIVE_WORDS = {
    "bad", "problem", "issue", "challenge", "difficult", "failure", "negative",
    "risk", "poor", "concern", "limitation", "inefficient",
}

STOP_WORDS = {
    "i", "me", "my", "myself", "we", "our", "ours", "ourselves", "you", "your",
    "he", "him", "his", "she", "her", "it", "its", "they", "them", "their",
    "what", "which", "who", "whom", "this", "that", "these", "those", "am",
    "is", "are", "was", "were", "be", "been", "being", "have", "has", "had",
    "do", "does", "did", "a", "an", "the", "and", "but", "if", "or", "because",
    "as", "until", "while", "of", "at", "by", "for", "with", "about", "to", "from",
}

KEYWORD_QUESTION_TEMPLATES = [
    "Can you elaborate on your point about '{keyword}'?",
    "What are the implications of '{keyword}' in this context?",
    "How does '{keyword}' relate to the main problem you're solving?",
]

GENERIC_QUESTIONS = [
    "Could you elaborate on your main point?",
    "What is the key takeaway from your presentation?",
    "What are the next steps?",
]
